import json
from typing import Any, Mapping
from uuid import uuid4

from app.application.interfaces.payment_gateway import (
    GatewayEvent,
    GatewayOrder,
    GatewayOrderRequest,
    GatewayStatus,
    GatewayStatusResult,
    PaymentGateway,
)
from app.domain.errors import GatewayError, ValidationError
from app.infrastructure.gateways.signing import hmac_hex, signatures_match

STUB_WEBHOOK_SECRET = "stub-webhook-secret"


class StubPaymentGateway(PaymentGateway):
    """
    Offline stand-in for a payment gateway, used in in-memory mode and tests.

    Webhook bodies look like `{"order_id", "payment_id", "payment_status"}`
    and are signed with HMAC-SHA256 of the raw body in `x-stub-signature`.
    Statuses use the NOWPayments vocabulary.
    """

    SIGNATURE_HEADER = "x-stub-signature"

    STATUS_MAP = {
        "waiting": GatewayStatus.PENDING,
        "confirming": GatewayStatus.PROCESSING,
        "finished": GatewayStatus.SUCCESS,
        "failed": GatewayStatus.FAILED,
        "expired": GatewayStatus.FAILED,
    }

    def __init__(
        self,
        name: str,
        payment_method: str,
        supports_polling: bool = False,
        acks_failed_payments_with_fail: bool = False,
        require_pay_currency: bool = False,
        webhook_secret: str = STUB_WEBHOOK_SECRET,
    ) -> None:
        self.name = name
        self.payment_method = payment_method
        self.supports_polling = supports_polling
        self.acks_failed_payments_with_fail = acks_failed_payments_with_fail
        self.require_pay_currency = require_pay_currency
        self._webhook_secret = webhook_secret
        self.orders: dict[str, GatewayOrder] = {}
        self.remote_statuses: dict[str, str] = {}
        self.closed_orders: list[str] = []
        self.fail_next_create = False

    def sign_body(self, raw_body: bytes | str) -> str:
        return hmac_hex(self._webhook_secret, raw_body, algorithm="sha256")

    def validate_order_request(self, request: GatewayOrderRequest) -> None:
        if self.require_pay_currency and not request.pay_currency:
            raise ValidationError("pay_currency", "is required for this gateway")

    def build_order_payload(self, request: GatewayOrderRequest) -> dict[str, Any]:
        return {
            "order_id": request.order_id,
            "amount": request.amount.to_fixed(2),
            "currency": request.amount.currency_code,
            "description": f"Payment for {request.booking_type} booking",
        }

    async def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        self.validate_order_request(request)
        if self.fail_next_create:
            self.fail_next_create = False
            raise GatewayError(self.name, "simulated gateway outage")
        gateway_order_id = f"{self.name}_{uuid4().hex[:12]}"
        order = GatewayOrder(
            order_id=request.order_id,
            gateway_order_id=gateway_order_id,
            checkout_url=f"https://checkout.invalid/{self.name}/{gateway_order_id}",
            raw={"status": "SUCCESS", "data": self.build_order_payload(request)},
        )
        self.orders[request.order_id] = order
        self.remote_statuses[request.order_id] = "waiting"
        return order

    def verify_webhook_signature(self, headers: Mapping[str, str], raw_body: bytes) -> bool:
        return signatures_match(self.sign_body(raw_body), headers.get(self.SIGNATURE_HEADER))

    def parse_webhook_event(self, raw_body: bytes) -> GatewayEvent:
        try:
            payload = json.loads(raw_body)
        except json.JSONDecodeError as exc:
            raise ValidationError("body", "webhook body is not valid JSON") from exc
        order_id = payload.get("order_id")
        raw_status = payload.get("payment_status")
        if not order_id or not raw_status:
            raise ValidationError("body", "webhook requires order_id and payment_status")
        payment_id = payload.get("payment_id")
        return GatewayEvent(
            order_id=order_id,
            status=self.normalize_status(raw_status),
            raw_status=raw_status,
            gateway_payment_id=str(payment_id) if payment_id is not None else None,
            payload=payload,
        )

    async def query_order_status(self, order_id: str, gateway_order_id: str | None = None) -> GatewayStatusResult:
        raw_status = self.remote_statuses.get(order_id)
        if raw_status is None:
            raise GatewayError(self.name, f"unknown order {order_id}")
        return GatewayStatusResult(
            order_id=order_id,
            status=self.STATUS_MAP.get(raw_status),
            raw_status=raw_status,
            gateway_payment_id=f"pay_{order_id}" if raw_status == "finished" else None,
        )

    async def close_order(self, order_id: str, gateway_order_id: str | None = None) -> None:
        self.closed_orders.append(order_id)

    async def list_currencies(self) -> list[dict[str, Any]]:
        return [
            {"id": 1, "code": "BTC", "name": "Bitcoin", "enable": True, "logo_url": None, "ticker": "btc", "network": "btc"},
            {"id": 2, "code": "USDTTRC20", "name": "Tether USD (TRC20)", "enable": True, "logo_url": None, "ticker": "usdt", "network": "trx"},
        ]
