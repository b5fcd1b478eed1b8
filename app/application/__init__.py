"""
Application layer - Travel Bookings.

Use cases, DTOs and the ports the infrastructure implements.

Layout:
- use_cases/: booking processor, payment reconciliation, order creation, sweeper
- dtos/: Data Transfer Objects
- interfaces/: ports (contracts for adapters)
"""

from app.application.dtos import (
    BookingDTO,
    BookingPageDTO,
    CreateOrderCommand,
    CreateOrderResult,
    PaymentStatusDTO,
)
from app.application.interfaces import (
    BookingRepo,
    Clock,
    FakeClock,
    Notifier,
    NotificationRepo,
    OrderIdGenerator,
    PaymentGateway,
    SystemClock,
    UserDirectory,
)

__all__ = [
    # DTOs
    "BookingDTO",
    "BookingPageDTO",
    "CreateOrderCommand",
    "CreateOrderResult",
    "PaymentStatusDTO",
    # Interfaces
    "BookingRepo",
    "NotificationRepo",
    "UserDirectory",
    "PaymentGateway",
    "Notifier",
    "Clock",
    "SystemClock",
    "FakeClock",
    "OrderIdGenerator",
]
