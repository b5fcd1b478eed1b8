import json
import logging
from typing import Any, Callable, Mapping

import httpx

from app.application.interfaces.clock import Clock, SystemClock
from app.application.interfaces.payment_gateway import GatewayEvent, PaymentGateway
from app.domain.errors import GatewayError, ValidationError
from app.infrastructure.circuit_breaker import CircuitBreakerError, gateway_breaker, guarded_call


class HttpPaymentGateway(PaymentGateway):
    """
    Shared HTTP plumbing for the crypto payment gateways.

    Every outbound call goes through the gateway circuit breaker. Transport
    failures, 5xx answers, 4xx answers and non-JSON bodies all surface as
    GatewayError so callers only handle one error type.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 20.0,
        query_timeout_seconds: float = 10.0,
        webhook_tolerance_seconds: int = 300,
        clock: Clock | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._query_timeout = query_timeout_seconds
        self._webhook_tolerance = webhook_tolerance_seconds
        self._clock = clock or SystemClock()
        self._logger = logging.getLogger(__name__)

    async def _post(
        self,
        path: str,
        body: str,
        headers: Mapping[str, str],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return await self._send("POST", path, headers, content=body, timeout=timeout)

    async def _get(
        self,
        path: str,
        headers: Mapping[str, str],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return await self._send("GET", path, headers, timeout=timeout)

    async def _send(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        content: str | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        timeout = timeout or self._timeout

        async def _make_request():
            async with httpx.AsyncClient(timeout=timeout) as client:
                if method == "POST":
                    response = await client.post(url, content=content, headers=dict(headers))
                else:
                    response = await client.get(url, headers=dict(headers))
            # only server-side failures count against the breaker
            if response.status_code >= 500:
                raise GatewayError(self.name, f"HTTP {response.status_code} from {path}")
            return response

        try:
            response = await guarded_call(gateway_breaker, _make_request)
        except CircuitBreakerError as exc:
            self._logger.error(
                "Payment gateway circuit breaker is open",
                extra={"gateway": self.name, "path": path},
            )
            raise GatewayError(self.name, "service temporarily unavailable (circuit breaker open)") from exc
        except httpx.TimeoutException as exc:
            self._logger.warning(
                "Payment gateway request timeout",
                extra={"gateway": self.name, "path": path, "timeout": timeout},
            )
            raise GatewayError(self.name, f"timeout after {timeout}s") from exc
        except httpx.HTTPError as exc:
            self._logger.error(
                "Payment gateway HTTP error",
                exc_info=exc,
                extra={"gateway": self.name, "path": path},
            )
            raise GatewayError(self.name, str(exc) or exc.__class__.__name__) from exc

        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise GatewayError(self.name, f"non-JSON response (HTTP {response.status_code})") from exc
        if not isinstance(data, (dict, list)):
            raise GatewayError(self.name, f"unexpected response body (HTTP {response.status_code})")
        if response.status_code >= 400:
            raise GatewayError(self.name, self._error_detail(data, response.status_code))
        return data

    def _error_detail(self, data: Any, status_code: int) -> str:
        if isinstance(data, dict):
            message = data.get("errorMessage") or data.get("message") or data.get("msg")
            if message:
                return f"HTTP {status_code}: {message}"
        return f"HTTP {status_code}"

    def _timestamp_is_fresh(self, timestamp: str | None) -> bool:
        """Millisecond webhook timestamps must be within the tolerance of now."""
        if self._webhook_tolerance <= 0:
            return True
        try:
            sent_at = int(timestamp or "")
        except ValueError:
            return False
        return abs(self._clock.epoch_millis() - sent_at) <= self._webhook_tolerance * 1000

    @staticmethod
    def _parse_json_body(
        gateway_name: str,
        raw_body: bytes | str,
        parse_float: Callable[[str], Any] | None = None,
    ) -> dict[str, Any]:
        try:
            payload = json.loads(raw_body, parse_float=parse_float)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError("body", "webhook body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationError("body", "webhook body must be a JSON object")
        return payload

    def _parse_biz_webhook(self, raw_body: bytes) -> GatewayEvent:
        """Binance Pay and GatePay notifications: `bizStatus` plus an order `data` object."""
        payload = self._parse_json_body(self.name, raw_body)
        data = payload.get("data") or {}
        # bizType notifications carry `data` as a JSON-encoded string
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                raise ValidationError("data", "webhook data is not valid JSON") from exc
        order_id = data.get("merchantTradeNo") if isinstance(data, dict) else None
        if not order_id:
            raise ValidationError("merchantTradeNo", "is missing from the webhook")
        raw_status = payload.get("bizStatus")
        payment_id = data.get("transactionId") or payload.get("bizId")
        return GatewayEvent(
            order_id=order_id,
            status=self.normalize_status(raw_status),
            raw_status=raw_status,
            gateway_payment_id=str(payment_id) if payment_id is not None else None,
            payload=payload,
        )
