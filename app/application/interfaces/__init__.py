"""Interfaces (ports) of the application layer."""

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.notification_repo import NotificationRepo
from app.application.interfaces.notifier import NotificationEvent, Notifier
from app.application.interfaces.order_id_generator import (
    FakeOrderIdGenerator,
    OrderIdGenerator,
    RandomOrderIdGenerator,
)
from app.application.interfaces.payment_gateway import (
    GatewayEvent,
    GatewayOrder,
    GatewayOrderRequest,
    GatewayStatus,
    GatewayStatusResult,
    PaymentGateway,
    WebhookAck,
)
from app.application.interfaces.travel_provider import (
    FlightOrderProvider,
    StayBookingProvider,
    TransferOrderProvider,
)
from app.application.interfaces.user_directory import UserContact, UserDirectory

__all__ = [
    # Repositories
    "BookingRepo",
    "NotificationRepo",
    "UserDirectory",
    "UserContact",
    # Gateways
    "PaymentGateway",
    "GatewayEvent",
    "GatewayOrder",
    "GatewayOrderRequest",
    "GatewayStatus",
    "GatewayStatusResult",
    "WebhookAck",
    # Providers
    "FlightOrderProvider",
    "StayBookingProvider",
    "TransferOrderProvider",
    # Notifications
    "Notifier",
    "NotificationEvent",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "OrderIdGenerator",
    "RandomOrderIdGenerator",
    "FakeOrderIdGenerator",
]
