from decimal import Decimal
from typing import Any, Mapping

from app.application.interfaces.clock import Clock
from app.application.interfaces.payment_gateway import (
    GatewayEvent,
    GatewayOrder,
    GatewayOrderRequest,
    GatewayStatus,
    GatewayStatusResult,
)
from app.domain.entities.booking import PaymentMethod
from app.domain.errors import GatewayError, ValidationError
from app.infrastructure.gateways.http_payment_gateway import HttpPaymentGateway
from app.infrastructure.gateways.signing import compact_json, hmac_hex, signatures_match, sorted_compact_json

CURRENCY_FIELDS = ("id", "code", "name", "enable", "logo_url", "ticker", "network")


class NowPaymentsGateway(HttpPaymentGateway):
    """
    NOWPayments invoice-less payment API.

    Authenticated with the `x-api-key` header. IPN callbacks are signed with
    HMAC-SHA512 over the key-sorted JSON body using the IPN secret. The
    NOWPayments `payment_id` doubles as the gateway order id.
    """

    name = "nowpayments"
    payment_method = PaymentMethod.NOW_PAYMENTS.value

    STATUS_MAP = {
        "waiting": GatewayStatus.PENDING,
        "confirming": GatewayStatus.PROCESSING,
        "confirmed": GatewayStatus.PROCESSING,
        "sending": GatewayStatus.PROCESSING,
        "partially_paid": GatewayStatus.PROCESSING,
        "finished": GatewayStatus.SUCCESS,
        "failed": GatewayStatus.FAILED,
        "expired": GatewayStatus.FAILED,
        "refunded": GatewayStatus.FAILED,
    }

    def __init__(
        self,
        api_key: str,
        ipn_secret: str,
        webhook_url: str = "",
        base_url: str = "https://api.nowpayments.io/v1",
        timeout_seconds: float = 20.0,
        query_timeout_seconds: float = 10.0,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout_seconds=timeout_seconds,
            query_timeout_seconds=query_timeout_seconds,
            webhook_tolerance_seconds=0,
            clock=clock,
        )
        self._api_key = api_key
        self._ipn_secret = ipn_secret
        self._webhook_url = webhook_url

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key, "Content-Type": "application/json"}

    def validate_order_request(self, request: GatewayOrderRequest) -> None:
        if not request.pay_currency:
            raise ValidationError("pay_currency", "is required for NOWPayments orders")

    def build_order_payload(self, request: GatewayOrderRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "price_amount": float(request.amount.quantized(2)),
            "price_currency": request.amount.currency_code,
            "pay_currency": request.pay_currency,
            "ipn_callback_url": self._webhook_url,
            "order_id": request.order_id,
            "order_description": f"Payment for {request.booking_type} booking",
        }
        if request.customer_email:
            payload["customer_email"] = request.customer_email
        return payload

    async def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        self.validate_order_request(request)
        body = compact_json(self.build_order_payload(request))
        response = await self._post("/payment", body, self._headers())
        if not response.get("payment_id") or not response.get("payment_status"):
            raise GatewayError(self.name, response.get("message") or "payment was not created")
        return GatewayOrder(
            order_id=request.order_id,
            gateway_order_id=str(response["payment_id"]),
            checkout_url=response.get("invoice_url"),
            raw=response,
        )

    def verify_webhook_signature(self, headers: Mapping[str, str], raw_body: bytes) -> bool:
        provided = headers.get("x-nowpayments-sig")
        if not provided:
            return False
        try:
            payload = self._parse_json_body(self.name, raw_body, parse_float=Decimal)
        except ValidationError:
            return False
        expected = hmac_hex(self._ipn_secret, sorted_compact_json(payload))
        return signatures_match(expected, provided)

    def parse_webhook_event(self, raw_body: bytes) -> GatewayEvent:
        payload = self._parse_json_body(self.name, raw_body)
        payment_id = payload.get("payment_id")
        raw_status = payload.get("payment_status")
        order_id = payload.get("order_id")
        if not payment_id or not raw_status or not order_id:
            raise ValidationError("body", "webhook requires payment_id, payment_status and order_id")
        return GatewayEvent(
            order_id=str(order_id),
            status=self.normalize_status(raw_status),
            raw_status=raw_status,
            gateway_payment_id=str(payment_id),
            payload=payload,
        )

    async def query_order_status(self, order_id: str, gateway_order_id: str | None = None) -> GatewayStatusResult:
        if not gateway_order_id:
            raise GatewayError(self.name, f"no NOWPayments payment id recorded for order {order_id}")
        response = await self._get(f"/payment/{gateway_order_id}", self._headers(), timeout=self._query_timeout)
        raw_status = response.get("payment_status")
        return GatewayStatusResult(
            order_id=order_id,
            status=self.STATUS_MAP.get(raw_status or ""),
            raw_status=raw_status,
            gateway_payment_id=str(response.get("payment_id") or gateway_order_id),
            raw=response,
        )

    async def list_currencies(self) -> list[dict[str, Any]]:
        response = await self._get("/full-currencies", {"x-api-key": self._api_key})
        currencies = response.get("currencies") if isinstance(response, dict) else None
        if not isinstance(currencies, list):
            raise GatewayError(self.name, "failed to fetch currencies")
        return [{key: currency.get(key) for key in CURRENCY_FIELDS} for currency in currencies]
