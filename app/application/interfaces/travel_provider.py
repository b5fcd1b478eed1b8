from abc import ABC, abstractmethod
from typing import Any


class FlightOrderProvider(ABC):
    @abstractmethod
    async def create_flight_order(self, order: dict[str, Any]) -> dict[str, Any]:
        """
        Tickets a flight order.

        `order` is the flight-order resource (type, flightOffers, travelers).
        Returns the provider's order data; explicit provider errors raise
        ProviderError.
        """
        pass


class TransferOrderProvider(ABC):
    @abstractmethod
    async def create_transfer_order(self, offer_id: str, order: dict[str, Any]) -> dict[str, Any]:
        """Books a transfer offer. Returns the full provider response body."""
        pass


class StayBookingProvider(ABC):
    @abstractmethod
    async def create_stay_booking(self, booking: dict[str, Any]) -> dict[str, Any]:
        """Books a stay quote. Returns the provider's booking data."""
        pass
