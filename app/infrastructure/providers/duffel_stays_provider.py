from typing import Any

from app.application.interfaces.travel_provider import StayBookingProvider
from app.domain.errors import ProviderError
from app.infrastructure.providers.http_provider import HttpTravelProvider

STAY_BOOKINGS_PATH = "/stays/bookings"


class DuffelStaysProvider(HttpTravelProvider, StayBookingProvider):
    """Books hotel quotes through the Duffel Stays API."""

    provider_name = "duffel"

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.duffel.com",
        api_version: str = "v2",
        timeout_seconds: float = 20.0,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds)
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Duffel-Version": self._api_version,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def create_stay_booking(self, booking: dict[str, Any]) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{self._base_url}{STAY_BOOKINGS_PATH}",
            headers=self._headers(),
            json_body={"data": booking},
        )
        errors = response.body.get("errors") or []
        if not response.ok or errors:
            first = errors[0] if errors and isinstance(errors[0], dict) else {}
            detail = first.get("message") or first.get("title") or f"HTTP {response.status_code}"
            self._logger.warning(
                "Duffel rejected stay booking",
                extra={"status_code": response.status_code, "detail": detail},
            )
            raise ProviderError(self.provider_name, str(detail))
        return response.body.get("data") or {}
