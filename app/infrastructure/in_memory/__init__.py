"""In-memory implementations for local runs and testing."""

from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.mailer import InMemoryMailer
from app.infrastructure.in_memory.notification_repo import InMemoryNotificationRepo
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.travel_providers import (
    StubFlightOrderProvider,
    StubStayBookingProvider,
    StubTransferOrderProvider,
)
from app.infrastructure.in_memory.user_directory import InMemoryUserDirectory

__all__ = [
    # Repositories
    "InMemoryBookingRepo",
    "InMemoryNotificationRepo",
    "InMemoryUserDirectory",
    # Gateways and providers
    "StubPaymentGateway",
    "StubFlightOrderProvider",
    "StubTransferOrderProvider",
    "StubStayBookingProvider",
    # Notifications
    "InMemoryMailer",
]
