import time
from typing import Any

from app.domain.errors import ProviderError
from app.infrastructure.providers.http_provider import HttpTravelProvider, ProviderResponse

TOKEN_PATH = "/v1/security/oauth2/token"
TOKEN_EXPIRY_MARGIN_SECONDS = 30


class AmadeusClient(HttpTravelProvider):
    """
    Amadeus Self-Service API client.

    Authenticates with the OAuth2 client-credentials grant and reuses the
    access token until shortly before it expires.
    """

    provider_name = "amadeus"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = "https://test.api.amadeus.com",
        timeout_seconds: float = 20.0,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds)
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url = base_url.rstrip("/")
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = await self._request(
            "POST",
            f"{self._base_url}{TOKEN_PATH}",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            form={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
        )
        token = response.body.get("access_token")
        if not response.ok or not token:
            detail = response.body.get("error_description") or response.body.get("error") or "authentication failed"
            raise ProviderError(self.provider_name, str(detail))

        expires_in = int(response.body.get("expires_in") or 0)
        self._token = token
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        return token

    async def post(
        self,
        path: str,
        body: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> ProviderResponse:
        token = await self.access_token()
        return await self._request(
            "POST",
            f"{self._base_url}{path}",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/vnd.amadeus+json",
            },
            json_body=body,
            params=params,
        )

    def error_detail(self, body: dict[str, Any], fallback: str) -> str:
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict):
            first = errors[0]
            return str(first.get("detail") or first.get("title") or fallback)
        return fallback
