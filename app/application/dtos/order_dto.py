"""DTOs for order creation and payment status."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass
class CreateOrderCommand:
    """Order creation input; type-specific fields are read per booking type."""

    amount: Decimal
    currency: str
    booking_type: str

    # Flight
    flight_offers: list[dict[str, Any]] | None = None
    travelers: list[dict[str, Any]] | None = None

    # Car transfer
    car_offer_id: str | None = None
    passengers: list[dict[str, Any]] | None = None
    note: str | None = None
    start_connected_segment: dict[str, Any] | None = None
    end_connected_segment: dict[str, Any] | None = None

    # Hotel
    quote_id: str | None = None
    guests: list[dict[str, Any]] | None = None
    email: str | None = None
    phone_number: str | None = None
    stay_special_requests: str | None = None

    # Vacation
    package: dict[str, Any] | None = None

    # Gateway
    pay_currency: str | None = None

    def type_payload(self) -> dict[str, Any]:
        """Fields the booking processor validates for `booking_type`."""
        return {
            "flight_offers": self.flight_offers,
            "travelers": self.travelers,
            "car_offer_id": self.car_offer_id,
            "passengers": self.passengers,
            "note": self.note,
            "start_connected_segment": self.start_connected_segment,
            "end_connected_segment": self.end_connected_segment,
            "quote_id": self.quote_id,
            "guests": self.guests,
            "email": self.email,
            "phone_number": self.phone_number,
            "stay_special_requests": self.stay_special_requests,
            "package": self.package,
        }


@dataclass
class CreateOrderResult:
    order_id: str
    booking_id: str
    gateway: str
    gateway_order_id: str | None = None
    checkout_url: str | None = None
    gateway_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentStatusDTO:
    """Local booking state side by side with the gateway's view."""

    order_id: str
    booking_status: str
    payment_status: str
    gateway_status: str | None = None
    gateway_raw_status: str | None = None
