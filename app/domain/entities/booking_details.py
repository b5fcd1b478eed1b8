"""Type-specific booking details (one variant per booking type)."""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Union


class BookingType(str, Enum):
    """Kinds of travel product a booking can hold."""

    FLIGHT = "flight"
    HOTEL = "hotel"
    CAR = "car"
    VACATION = "vacation"


@dataclass(frozen=True)
class FlightDetails:
    """Amadeus flight offers and travelers; `flight_order_id` is set on ticketing."""

    flight_offers: tuple[dict[str, Any], ...]
    travelers: tuple[dict[str, Any], ...]
    flight_order_id: str | None = None


@dataclass(frozen=True)
class HotelDetails:
    """Duffel Stays quote plus guest contact; confirmation fields are set on booking."""

    quote_id: str
    guests: tuple[dict[str, Any], ...]
    email: str
    phone_number: str
    stay_special_requests: str | None = None
    booking_id: str | None = None
    check_in_date: str | None = None
    check_out_date: str | None = None
    rooms: int | None = None
    check_in_information: dict[str, Any] | None = None
    accommodation_name: str | None = None
    address: dict[str, Any] | None = None


@dataclass(frozen=True)
class CarDetails:
    """Amadeus transfer offer and passengers; transfer fields are set on confirmation."""

    car_offer_id: str
    passengers: tuple[dict[str, Any], ...]
    note: str = "No special requests"
    start_connected_segment: dict[str, Any] | None = None
    end_connected_segment: dict[str, Any] | None = None
    confirm_nbr: str | None = None
    transfer_type: str | None = None
    distance: dict[str, Any] | None = None
    start: dict[str, Any] | None = None
    end: dict[str, Any] | None = None
    vehicle: dict[str, Any] | None = None
    service_provider: dict[str, Any] | None = None
    quotation: dict[str, Any] | None = None


@dataclass(frozen=True)
class VacationDetails:
    """Free-form vacation package."""

    package: dict[str, Any]
    confirmed: bool = False


BookingDetails = Union[FlightDetails, HotelDetails, CarDetails, VacationDetails]

DETAILS_TYPES: dict[BookingType, type] = {
    BookingType.FLIGHT: FlightDetails,
    BookingType.HOTEL: HotelDetails,
    BookingType.CAR: CarDetails,
    BookingType.VACATION: VacationDetails,
}

_TUPLE_FIELDS = {"flight_offers", "travelers", "guests", "passengers"}


def details_to_dict(details: BookingDetails) -> dict[str, Any]:
    return asdict(details)


def details_from_dict(booking_type: BookingType | str, data: dict[str, Any]) -> BookingDetails:
    """Rebuilds the details variant for `booking_type` from its stored dict."""
    details_cls = DETAILS_TYPES[BookingType(booking_type)]
    kwargs = {}
    for f in fields(details_cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if f.name in _TUPLE_FIELDS and value is not None:
            value = tuple(value)
        kwargs[f.name] = value
    return details_cls(**kwargs)
