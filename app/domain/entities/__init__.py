"""Entities of the bookings domain."""

from app.domain.entities.booking import (
    Booking,
    BookingStatus,
    PaymentDetails,
    PaymentMethod,
    PaymentStatus,
)
from app.domain.entities.booking_details import (
    BookingDetails,
    BookingType,
    CarDetails,
    FlightDetails,
    HotelDetails,
    VacationDetails,
    details_from_dict,
    details_to_dict,
)
from app.domain.entities.notification import Notification

__all__ = [
    # Booking
    "Booking",
    "BookingStatus",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentStatus",
    # Details
    "BookingDetails",
    "BookingType",
    "CarDetails",
    "FlightDetails",
    "HotelDetails",
    "VacationDetails",
    "details_from_dict",
    "details_to_dict",
    # Notification
    "Notification",
]
