"""Booking entity - root aggregate of the bookings domain."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from app.domain.entities.booking_details import DETAILS_TYPES, BookingDetails, BookingType
from app.domain.errors import InvalidBookingTransitionError


class BookingStatus(str, Enum):
    """Lifecycle of the travel booking itself."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Lifecycle of the embedded payment."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """Gateway display names stored on the payment sub-record."""

    BINANCE_PAY = "Binance Pay"
    GATE_PAY = "Gate Pay"
    NOW_PAYMENTS = "Now Payment"


@dataclass
class PaymentDetails:
    """
    Payment sub-state of a booking.

    `transaction_id` is the merchant order id; `gateway_order_id` is the
    gateway's id for the order (prepay id, payment id) and
    `gateway_payment_id` the id reported with a successful payment.
    """

    transaction_id: str
    payment_method: str
    amount: Decimal
    currency: str
    payment_status: PaymentStatus = PaymentStatus.PENDING
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None


@dataclass
class Booking:
    """
    Root aggregate: one record per booking attempt.

    Created pending before the gateway call. Afterwards it is mutated only by
    payment reconciliation and the pending payment sweeper. `version` is the
    optimistic concurrency token and is bumped by the repository on save.
    """

    user_id: str
    booking_type: BookingType
    details: BookingDetails
    payment: PaymentDetails
    id: str = field(default_factory=lambda: uuid4().hex)
    booking_status: BookingStatus = BookingStatus.PENDING
    commit_started_at: datetime | None = None
    failure_reason: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.booking_type = BookingType(self.booking_type)
        expected = DETAILS_TYPES[self.booking_type]
        if not isinstance(self.details, expected):
            raise ValueError(
                f"details for a {self.booking_type.value} booking must be "
                f"{expected.__name__}, got {type(self.details).__name__}"
            )

    # === Derived state ===

    @property
    def order_id(self) -> str:
        return self.payment.transaction_id

    @property
    def is_terminal(self) -> bool:
        """Completed payments and failed/cancelled bookings never change again."""
        return (
            self.payment.payment_status == PaymentStatus.COMPLETED
            or self.booking_status in (BookingStatus.FAILED, BookingStatus.CANCELLED)
        )

    @property
    def is_commit_in_flight(self) -> bool:
        """The provider commit was claimed and has not reached a terminal state."""
        return self.commit_started_at is not None and not self.is_terminal

    @property
    def is_awaiting_payment(self) -> bool:
        return self.booking_status == BookingStatus.PENDING and self.payment.payment_status in (
            PaymentStatus.PENDING,
            PaymentStatus.PROCESSING,
        )

    # === Transitions ===

    def _ensure_open(self, operation: str) -> None:
        if self.is_terminal:
            raise InvalidBookingTransitionError(
                self.order_id, self._status_label(), operation
            )

    def _status_label(self) -> str:
        return f"{self.booking_status.value}/{self.payment.payment_status.value}"

    def attach_gateway_order(self, gateway_order_id: str, now: datetime) -> None:
        """Records the gateway's own id for the order once it is issued."""
        self._ensure_open("attach gateway order to")
        self.payment.gateway_order_id = gateway_order_id
        self.updated_at = now

    def mark_processing(self, now: datetime) -> None:
        """Gateway saw the payment but has not settled it yet."""
        self._ensure_open("mark processing")
        self.payment.payment_status = PaymentStatus.PROCESSING
        self.updated_at = now

    def claim_commit(self, now: datetime) -> None:
        """Reserves the provider commit step for the caller."""
        self._ensure_open("claim commit for")
        if self.commit_started_at is not None:
            raise InvalidBookingTransitionError(self.order_id, "commit in flight", "claim commit for")
        self.commit_started_at = now
        self.payment.payment_status = PaymentStatus.PROCESSING
        self.updated_at = now

    def confirm(self, details: BookingDetails, gateway_payment_id: str | None, now: datetime) -> None:
        """Commit succeeded: store provider confirmation and settle the payment."""
        self._ensure_open("confirm")
        if not isinstance(details, DETAILS_TYPES[self.booking_type]):
            raise ValueError(f"details type mismatch for {self.booking_type.value} booking")
        self.details = details
        self.booking_status = BookingStatus.CONFIRMED
        self.payment.payment_status = PaymentStatus.COMPLETED
        if gateway_payment_id:
            self.payment.gateway_payment_id = gateway_payment_id
        self.failure_reason = None
        self.updated_at = now

    def fail(self, reason: str, now: datetime) -> None:
        """Payment failed at the gateway or the provider commit failed."""
        self._ensure_open("fail")
        self.booking_status = BookingStatus.FAILED
        self.payment.payment_status = PaymentStatus.FAILED
        self.failure_reason = reason
        self.updated_at = now

    def cancel(self, reason: str, now: datetime) -> None:
        """Payment never arrived within the pending window."""
        self._ensure_open("cancel")
        self.booking_status = BookingStatus.CANCELLED
        self.payment.payment_status = PaymentStatus.FAILED
        self.failure_reason = reason
        self.updated_at = now
