import json
import logging
from typing import Any

import httpx

from app.domain.errors import ProviderError
from app.infrastructure.circuit_breaker import CircuitBreakerError, guarded_call, provider_breaker


class ProviderResponse:
    def __init__(self, status_code: int, body: dict[str, Any]):
        self.status_code = status_code
        self.body = body

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTravelProvider:
    """
    Outbound HTTP for travel providers, protected by the provider breaker.

    4xx answers are returned to the caller, which knows the provider's error
    body layout. Everything else that goes wrong raises ProviderError.
    """

    provider_name = "provider"

    def __init__(self, timeout_seconds: float = 20.0) -> None:
        self._timeout = timeout_seconds
        self._logger = logging.getLogger(__name__)

    async def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None = None,
        form: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> ProviderResponse:
        async def _make_request():
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if method == "POST":
                    response = await client.post(url, json=json_body, data=form, headers=headers, params=params)
                else:
                    response = await client.get(url, headers=headers, params=params)
            if response.status_code >= 500:
                raise ProviderError(self.provider_name, f"HTTP {response.status_code}")
            return response

        try:
            response = await guarded_call(provider_breaker, _make_request)
        except CircuitBreakerError as exc:
            self._logger.error("Travel provider circuit breaker is open", extra={"provider": self.provider_name})
            raise ProviderError(self.provider_name, "service temporarily unavailable (circuit breaker open)") from exc
        except httpx.TimeoutException as exc:
            self._logger.warning(
                "Travel provider request timeout",
                extra={"provider": self.provider_name, "timeout": self._timeout},
            )
            raise ProviderError(self.provider_name, f"timeout after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            self._logger.error("Travel provider HTTP error", exc_info=exc, extra={"provider": self.provider_name})
            raise ProviderError(self.provider_name, str(exc) or exc.__class__.__name__) from exc

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise ProviderError(self.provider_name, f"non-JSON response (HTTP {response.status_code})") from exc
        if not isinstance(body, dict):
            raise ProviderError(self.provider_name, f"unexpected response body (HTTP {response.status_code})")
        return ProviderResponse(response.status_code, body)
