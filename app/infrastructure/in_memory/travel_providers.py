from typing import Any
from uuid import uuid4

from app.application.interfaces.travel_provider import (
    FlightOrderProvider,
    StayBookingProvider,
    TransferOrderProvider,
)
from app.domain.errors import ProviderError


class StubFlightOrderProvider(FlightOrderProvider):
    def __init__(self) -> None:
        self.orders: list[dict[str, Any]] = []
        self.error: str | None = None

    async def create_flight_order(self, order: dict[str, Any]) -> dict[str, Any]:
        if self.error:
            raise ProviderError("amadeus", self.error)
        self.orders.append(order)
        return {
            "type": "flight-order",
            "id": f"eJzTd9f{uuid4().hex[:10]}",
            "associatedRecords": [{"reference": uuid4().hex[:6].upper(), "originSystemCode": "GDS"}],
            "flightOffers": order.get("flightOffers", []),
            "travelers": order.get("travelers", []),
        }


class StubTransferOrderProvider(TransferOrderProvider):
    def __init__(self) -> None:
        self.orders: list[tuple[str, dict[str, Any]]] = []
        self.error: str | None = None

    async def create_transfer_order(self, offer_id: str, order: dict[str, Any]) -> dict[str, Any]:
        if self.error:
            return {"errors": [{"status": 400, "detail": self.error}]}
        self.orders.append((offer_id, order))
        return {
            "data": {
                "type": "transfer-order",
                "id": uuid4().hex[:10],
                "transfers": [
                    {
                        "confirmNbr": uuid4().hex[:8].upper(),
                        "transferType": "PRIVATE",
                        "start": {"locationCode": "CDG"},
                        "end": {"address": {"cityName": "Paris"}},
                        "vehicle": {"code": "VAN", "category": "BU"},
                        "serviceProvider": {"code": "ABC", "name": "Stub Transfers"},
                        "quotation": {"monetaryAmount": "100.00", "currencyCode": "EUR"},
                    }
                ],
            }
        }


class StubStayBookingProvider(StayBookingProvider):
    def __init__(self) -> None:
        self.bookings: list[dict[str, Any]] = []
        self.error: str | None = None

    async def create_stay_booking(self, booking: dict[str, Any]) -> dict[str, Any]:
        if self.error:
            raise ProviderError("duffel", self.error)
        self.bookings.append(booking)
        return {
            "id": f"bok_{uuid4().hex[:12]}",
            "check_in_date": "2026-12-01",
            "check_out_date": "2026-12-04",
            "rooms": 1,
            "accommodation": {
                "name": "Stub Hotel",
                "check_in_information": {
                    "check_in_after_time": "15:00",
                    "check_in_before_time": "23:00",
                    "check_out_before_time": "11:00",
                },
                "location": {
                    "address": {
                        "line_one": "1 Main St",
                        "city_name": "Lisbon",
                        "country_code": "PT",
                        "postal_code": "1000-001",
                    }
                },
            },
        }
