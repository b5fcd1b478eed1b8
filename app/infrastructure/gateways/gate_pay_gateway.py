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


class GatePayGateway(HttpPaymentGateway):
    """
    GatePay checkout API.

    The only gateway whose orders are polled by the pending payment sweeper.
    The top-level `status` of a response only says the API call succeeded;
    the payment state lives in `data.status`.
    """

    name = "gatepay"
    payment_method = PaymentMethod.GATE_PAY.value
    supports_polling = True
    acks_failed_payments_with_fail = True

    STATUS_MAP = {
        "INITIAL": GatewayStatus.PENDING,
        "PENDING": GatewayStatus.PENDING,
        "PROCESS": GatewayStatus.PENDING,
        "PAY_SUCCESS": GatewayStatus.SUCCESS,
        "SUCCESS": GatewayStatus.SUCCESS,
        "PAID": GatewayStatus.SUCCESS,
        "PAY_CLOSED": GatewayStatus.FAILED,
        "PAY_ERROR": GatewayStatus.FAILED,
        "PAY_FAIL": GatewayStatus.FAILED,
        "EXPIRED": GatewayStatus.FAILED,
        "TIMEOUT": GatewayStatus.FAILED,
        "CLOSED": GatewayStatus.FAILED,
    }

    NONCE_LENGTH = 16
    ORDER_EXPIRY_MILLIS = 3_600_000
    CREATE_ORDER_PATH = "/v1/pay/checkout/order"
    QUERY_ORDER_PATH = "/v1/pay/order/query"
    CLOSE_ORDER_PATH = "/v1/pay/order/close"

    def __init__(
        self,
        client_id: str,
        api_key: str,
        merchant_user_id: int | None = None,
        chain: str = "",
        full_curr_type: str = "",
        return_url: str = "",
        cancel_url: str = "",
        settlement_currency: str = "USDT",
        base_url: str = "https://openplatform.gateapi.io",
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
        self._client_id = client_id
        self._api_key = api_key
        self._merchant_user_id = merchant_user_id
        self._chain = chain
        self._full_curr_type = full_curr_type
        self._return_url = return_url
        self._cancel_url = cancel_url
        self._settlement_currency = settlement_currency

    def sign(self, timestamp: str, nonce: str, body: str | bytes) -> str:
        return hmac_hex(f"{self._api_key}=", canonical_payload(timestamp, nonce, body))

    def _signed_headers(self, body: str) -> dict[str, str]:
        timestamp = str(self._clock.epoch_millis())
        nonce = generate_nonce(self.NONCE_LENGTH)
        return {
            "Content-Type": "application/json",
            "X-GatePay-Certificate-ClientId": self._client_id,
            "X-GatePay-Timestamp": timestamp,
            "X-GatePay-Nonce": nonce,
            "X-GatePay-Signature": self.sign(timestamp, nonce, body),
        }

    def build_order_payload(self, request: GatewayOrderRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "merchantTradeNo": request.order_id,
            "currency": self._settlement_currency,
            "orderAmount": request.amount.to_fixed(8),
            "env": {"terminalType": "WEB"},
            "goods": {
                "goodsType": "02",
                "goodsName": f"{request.booking_type} - {request.order_id}",
                "goodsDetail": f"Order No: {request.order_id}",
            },
            "orderExpireTime": self._clock.epoch_millis() + self.ORDER_EXPIRY_MILLIS,
            "returnUrl": self._return_url,
            "cancelUrl": self._cancel_url,
        }
        if self._merchant_user_id is not None:
            payload["merchantUserId"] = int(self._merchant_user_id)
        if self._chain:
            payload["chain"] = self._chain
        if self._full_curr_type:
            payload["fullCurrType"] = self._full_curr_type
        return payload

    async def _call(self, path: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        body = compact_json(payload)
        response = await self._post(path, body, self._signed_headers(body), timeout=timeout)
        if response.get("status") != "SUCCESS":
            detail = response.get("errorMessage") or response.get("label") or response.get("code") or "request rejected"
            raise GatewayError(self.name, str(detail))
        return response

    async def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        response = await self._call(self.CREATE_ORDER_PATH, self.build_order_payload(request), self._timeout)
        data = response.get("data") or {}
        return GatewayOrder(
            order_id=request.order_id,
            gateway_order_id=data.get("prepayId"),
            checkout_url=data.get("location") or data.get("checkoutUrl"),
            raw=response,
        )

    def verify_webhook_signature(self, headers: Mapping[str, str], raw_body: bytes) -> bool:
        timestamp = headers.get("x-gatepay-timestamp")
        nonce = headers.get("x-gatepay-nonce")
        provided = headers.get("x-gatepay-signature")
        if not timestamp or not nonce or not provided:
            return False
        if not self._timestamp_is_fresh(timestamp):
            self._logger.warning("Stale GatePay webhook timestamp", extra={"timestamp": timestamp})
            return False
        expected = self.sign(timestamp, nonce, raw_body)
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
