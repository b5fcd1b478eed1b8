from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from app.domain.errors import UnknownStatusError
from app.domain.value_objects.money import Money


class GatewayStatus(str, Enum):
    """Normalized payment status shared by every gateway."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class GatewayOrderRequest:
    order_id: str
    amount: Money
    booking_type: str
    user_id: str
    customer_email: str | None = None
    pay_currency: str | None = None


@dataclass
class GatewayOrder:
    order_id: str
    gateway_order_id: str | None = None
    checkout_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayEvent:
    """Webhook body reduced to what reconciliation needs."""

    order_id: str
    status: GatewayStatus
    raw_status: str
    gateway_payment_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayStatusResult:
    order_id: str
    status: GatewayStatus | None  # None when the gateway status is outside its vocabulary
    raw_status: str | None
    gateway_payment_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookAck:
    return_code: str = "SUCCESS"

    def to_body(self) -> dict[str, str]:
        return {"returnCode": self.return_code}


class PaymentGateway(ABC):
    """
    Adapter for one payment gateway.

    Subclasses declare `name` (route key), `payment_method` (display name
    stored on bookings) and `STATUS_MAP` (gateway vocabulary to
    `GatewayStatus`).
    """

    name: str
    payment_method: str
    supports_polling: bool = False
    acks_failed_payments_with_fail = False
    STATUS_MAP: Mapping[str, GatewayStatus] = {}

    def normalize_status(self, raw_status: str | None) -> GatewayStatus:
        status = self.STATUS_MAP.get(raw_status or "")
        if status is None:
            raise UnknownStatusError(self.name, raw_status)
        return status

    def validate_order_request(self, request: GatewayOrderRequest) -> None:
        """Gateway-specific request checks run before anything is persisted."""
        return None

    def webhook_ack(self, event: GatewayEvent) -> WebhookAck:
        if self.acks_failed_payments_with_fail and event.status == GatewayStatus.FAILED:
            return WebhookAck(return_code="FAIL")
        return WebhookAck()

    @abstractmethod
    def build_order_payload(self, request: GatewayOrderRequest) -> dict[str, Any]:
        pass

    @abstractmethod
    async def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        """Submits the order; transport or business failures raise GatewayError."""
        pass

    @abstractmethod
    def verify_webhook_signature(self, headers: Mapping[str, str], raw_body: bytes) -> bool:
        """`headers` keys are lower-cased. Missing headers verify as False."""
        pass

    @abstractmethod
    def parse_webhook_event(self, raw_body: bytes) -> GatewayEvent:
        pass

    @abstractmethod
    async def query_order_status(
        self, order_id: str, gateway_order_id: str | None = None
    ) -> GatewayStatusResult:
        pass

    async def close_order(self, order_id: str, gateway_order_id: str | None = None) -> None:
        """Gateways without a close endpoint let the order lapse on their side."""
        return None

    async def list_currencies(self) -> list[dict[str, Any]]:
        raise NotImplementedError
