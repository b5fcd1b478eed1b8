from app.infrastructure.providers.amadeus_client import AmadeusClient
from app.infrastructure.providers.amadeus_flight_provider import AmadeusFlightOrderProvider
from app.infrastructure.providers.amadeus_transfer_provider import AmadeusTransferOrderProvider
from app.infrastructure.providers.duffel_stays_provider import DuffelStaysProvider

__all__ = [
    "AmadeusClient",
    "AmadeusFlightOrderProvider",
    "AmadeusTransferOrderProvider",
    "DuffelStaysProvider",
]
