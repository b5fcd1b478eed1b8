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
from app.domain.errors import GatewayError
from app.infrastructure.gateways.http_payment_gateway import HttpPaymentGateway
from app.infrastructure.gateways.signing import (
    canonical_payload,
    compact_json,
    generate_nonce,
    hmac_hex,
    signatures_match,
)


class BinancePayGateway(HttpPaymentGateway):
    """
    Binance Pay merchant API (v2 orders).

    Requests are signed with HMAC-SHA512 over timestamp, nonce and body.
    Webhooks are verified the same way with the webhook secret, falling back
    to the API secret key when no dedicated secret is configured.
    """

    name = "binance"
    payment_method = PaymentMethod.BINANCE_PAY.value
    acks_failed_payments_with_fail = True

    STATUS_MAP = {
        "INITIAL": GatewayStatus.PENDING,
        "PAY_SUCCESS": GatewayStatus.SUCCESS,
        "PAID": GatewayStatus.SUCCESS,
        "PAY_CLOSED": GatewayStatus.FAILED,
        "EXPIRED": GatewayStatus.FAILED,
        "CANCELED": GatewayStatus.FAILED,
        "ERROR": GatewayStatus.FAILED,
        "REFUNDED": GatewayStatus.FAILED,
    }

    NONCE_LENGTH = 32
    CREATE_ORDER_PATH = "/binancepay/openapi/v2/order"
    QUERY_ORDER_PATH = "/binancepay/openapi/v2/order/query"
    CLOSE_ORDER_PATH = "/binancepay/openapi/order/close"
    ORDER_TIMEOUT_SECONDS = 1800

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        webhook_secret: str | None = None,
        return_url: str = "",
        cancel_url: str = "",
        webhook_url: str = "",
        settlement_currency: str = "USDT",
        base_url: str = "https://bpay.binanceapi.com",
        timeout_seconds: float = 20.0,
        query_timeout_seconds: float = 10.0,
        webhook_tolerance_seconds: int = 300,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout_seconds=timeout_seconds,
            query_timeout_seconds=query_timeout_seconds,
            webhook_tolerance_seconds=webhook_tolerance_seconds,
            clock=clock,
        )
        self._api_key = api_key
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret or secret_key
        self._return_url = return_url
        self._cancel_url = cancel_url
        self._webhook_url = webhook_url
        self._settlement_currency = settlement_currency

    def sign(self, timestamp: str, nonce: str, body: str | bytes) -> str:
        return hmac_hex(self._secret_key, canonical_payload(timestamp, nonce, body)).upper()

    def _signed_headers(self, body: str) -> dict[str, str]:
        timestamp = str(self._clock.epoch_millis())
        nonce = generate_nonce(self.NONCE_LENGTH)
        return {
            "Content-Type": "application/json",
            "BinancePay-Timestamp": timestamp,
            "BinancePay-Nonce": nonce,
            "BinancePay-Certificate-SN": self._api_key,
            "BinancePay-Signature": self.sign(timestamp, nonce, body),
        }

    def build_order_payload(self, request: GatewayOrderRequest) -> dict[str, Any]:
        return {
            "env": {"terminalType": "WEB"},
            "merchantTradeNo": request.order_id,
            "orderAmount": float(request.amount.quantized(2)),
            "currency": self._settlement_currency,
            "goods": {
                "goodsType": "01",
                "goodsCategory": "0000",
                "referenceGoodsId": request.order_id,
                "goodsName": "Booking Payment",
                "goodsDetail": f"Payment for {request.booking_type} booking",
            },
            "tradeType": "WEB",
            "timeout": self.ORDER_TIMEOUT_SECONDS,
            "returnUrl": self._return_url,
            "cancelUrl": self._cancel_url,
            "webhookUrl": self._webhook_url,
        }

    async def _call(self, path: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        body = compact_json(payload)
        response = await self._post(path, body, self._signed_headers(body), timeout=timeout)
        if response.get("status") != "SUCCESS":
            detail = response.get("errorMessage") or response.get("code") or "request rejected"
            raise GatewayError(self.name, str(detail))
        return response

    async def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        response = await self._call(self.CREATE_ORDER_PATH, self.build_order_payload(request), self._timeout)
        data = response.get("data") or {}
        return GatewayOrder(
            order_id=request.order_id,
            gateway_order_id=data.get("prepayId"),
            checkout_url=data.get("checkoutUrl"),
            raw=response,
        )

    def verify_webhook_signature(self, headers: Mapping[str, str], raw_body: bytes) -> bool:
        timestamp = headers.get("binancepay-timestamp")
        nonce = headers.get("binancepay-nonce")
        provided = headers.get("binancepay-signature")
        if not timestamp or not nonce or not provided:
            return False
        if not self._timestamp_is_fresh(timestamp):
            self._logger.warning("Stale Binance Pay webhook timestamp", extra={"timestamp": timestamp})
            return False
        message = canonical_payload(timestamp, nonce, raw_body)
        expected = hmac_hex(self._webhook_secret, message).upper()
        return signatures_match(expected, provided)

    def parse_webhook_event(self, raw_body: bytes) -> GatewayEvent:
        return self._parse_biz_webhook(raw_body)

    async def query_order_status(self, order_id: str, gateway_order_id: str | None = None) -> GatewayStatusResult:
        response = await self._call(self.QUERY_ORDER_PATH, {"merchantTradeNo": order_id}, self._query_timeout)
        data = response.get("data") or {}
        raw_status = data.get("status")
        payment_id = data.get("transactionId")
        return GatewayStatusResult(
            order_id=order_id,
            status=self.STATUS_MAP.get(raw_status or ""),
            raw_status=raw_status,
            gateway_payment_id=str(payment_id) if payment_id else None,
            raw=response,
        )

    async def close_order(self, order_id: str, gateway_order_id: str | None = None) -> None:
        await self._call(self.CLOSE_ORDER_PATH, {"merchantTradeNo": order_id}, self._query_timeout)
