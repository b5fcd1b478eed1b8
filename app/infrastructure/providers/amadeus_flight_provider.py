import logging
from typing import Any

from app.application.interfaces.travel_provider import FlightOrderProvider
from app.domain.errors import ProviderError
from app.infrastructure.providers.amadeus_client import AmadeusClient

FLIGHT_ORDERS_PATH = "/v1/booking/flight-orders"


class AmadeusFlightOrderProvider(FlightOrderProvider):
    """Creates flight orders (ticketing) through Amadeus Flight Create Orders."""

    def __init__(self, client: AmadeusClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def create_flight_order(self, order: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(FLIGHT_ORDERS_PATH, {"data": order})
        if not response.ok or response.body.get("errors"):
            detail = self._client.error_detail(response.body, f"HTTP {response.status_code}")
            self._logger.warning(
                "Amadeus rejected flight order",
                extra={"status_code": response.status_code, "detail": detail},
            )
            raise ProviderError("amadeus", detail)
        return response.body.get("data") or {}
