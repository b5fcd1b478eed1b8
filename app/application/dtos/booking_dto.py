"""DTOs for user-facing booking reads."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.domain.entities.booking import Booking
from app.domain.entities.booking_details import details_to_dict


@dataclass
class BookingDTO:
    """Booking as exposed to its owner."""

    id: str
    booking_type: str
    booking_status: str
    details: dict[str, Any]

    # Payment
    transaction_id: str
    payment_status: str
    payment_method: str
    amount: Decimal
    currency: str
    gateway_payment_id: str | None = None

    failure_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingDTO":
        return cls(
            id=booking.id,
            booking_type=booking.booking_type.value,
            booking_status=booking.booking_status.value,
            details=details_to_dict(booking.details),
            transaction_id=booking.payment.transaction_id,
            payment_status=booking.payment.payment_status.value,
            payment_method=booking.payment.payment_method,
            amount=booking.payment.amount,
            currency=booking.payment.currency,
            gateway_payment_id=booking.payment.gateway_payment_id,
            failure_reason=booking.failure_reason,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


@dataclass
class BookingPageDTO:
    items: list[BookingDTO] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0
