from datetime import datetime
from typing import Sequence

from app.domain.entities.booking import Booking


class BookingRepo:
    """
    Booking record store keyed by `payment.transaction_id`.

    `save` is a conditional write: it succeeds only when the stored version
    equals `booking.version`, bumps the version on the given instance and
    raises `OptimisticLockError` otherwise.
    """

    async def create(self, booking: Booking) -> None:
        raise NotImplementedError

    async def get_by_transaction_id(self, transaction_id: str) -> Booking | None:
        raise NotImplementedError

    async def get_by_id(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    async def save(self, booking: Booking) -> Booking:
        raise NotImplementedError

    async def list_awaiting_payment(
        self,
        payment_methods: Sequence[str] | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[Booking]:
        """Bookings still pending with a pending or processing payment."""
        raise NotImplementedError

    async def list_by_user(
        self,
        user_id: str,
        booking_type: str | None = None,
        booking_status: str | None = None,
    ) -> list[Booking]:
        """User's bookings, newest first."""
        raise NotImplementedError
