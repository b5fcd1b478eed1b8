"""DTOs (Data Transfer Objects) of the application layer."""

from app.application.dtos.booking_dto import BookingDTO, BookingPageDTO
from app.application.dtos.order_dto import (
    CreateOrderCommand,
    CreateOrderResult,
    PaymentStatusDTO,
)

__all__ = [
    # Orders
    "CreateOrderCommand",
    "CreateOrderResult",
    "PaymentStatusDTO",
    # Bookings
    "BookingDTO",
    "BookingPageDTO",
]
