import logging
from typing import Any

from app.application.interfaces.travel_provider import TransferOrderProvider
from app.domain.errors import ProviderError
from app.infrastructure.providers.amadeus_client import AmadeusClient

TRANSFER_ORDERS_PATH = "/v1/ordering/transfer-orders"


class AmadeusTransferOrderProvider(TransferOrderProvider):
    """Books car transfers through Amadeus Transfer Booking."""

    def __init__(self, client: AmadeusClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def create_transfer_order(self, offer_id: str, order: dict[str, Any]) -> dict[str, Any]:
        if not offer_id:
            raise ProviderError("amadeus", "transfer offer id is missing")
        # `order` already carries the {"data": ...} envelope
        response = await self._client.post(TRANSFER_ORDERS_PATH, order, params={"offerId": offer_id})
        if not response.ok:
            detail = self._client.error_detail(response.body, f"HTTP {response.status_code}")
            self._logger.warning(
                "Amadeus rejected transfer order",
                extra={"offer_id": offer_id, "status_code": response.status_code, "detail": detail},
            )
            raise ProviderError("amadeus", detail)
        return response.body
