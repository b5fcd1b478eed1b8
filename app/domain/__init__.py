"""
Domain layer - Travel Bookings.

Pure business rules with no framework dependencies.

Layout:
- entities/: Booking aggregate, type-specific details and Notification
- value_objects/: immutable values (Money, OrderId)
- errors.py: domain exceptions
"""

from app.domain.entities import (
    Booking,
    BookingDetails,
    BookingStatus,
    BookingType,
    CarDetails,
    FlightDetails,
    HotelDetails,
    Notification,
    PaymentDetails,
    PaymentMethod,
    PaymentStatus,
    VacationDetails,
)
from app.domain.errors import (
    AuthError,
    BookingNotFoundError,
    ConfigurationError,
    DomainError,
    GatewayError,
    NotFoundError,
    OptimisticLockError,
    ProviderError,
    SignatureError,
    UnknownGatewayError,
    UnknownStatusError,
    ValidationError,
)
from app.domain.value_objects import Money, OrderId

__all__ = [
    # Entities
    "Booking",
    "BookingDetails",
    "BookingStatus",
    "BookingType",
    "CarDetails",
    "FlightDetails",
    "HotelDetails",
    "Notification",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentStatus",
    "VacationDetails",
    # Value Objects
    "Money",
    "OrderId",
    # Errors
    "AuthError",
    "BookingNotFoundError",
    "ConfigurationError",
    "DomainError",
    "GatewayError",
    "NotFoundError",
    "OptimisticLockError",
    "ProviderError",
    "SignatureError",
    "UnknownGatewayError",
    "UnknownStatusError",
    "ValidationError",
]
