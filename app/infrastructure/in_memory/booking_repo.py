from copy import deepcopy
from datetime import datetime
from typing import Sequence

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking
from app.domain.errors import DuplicateOrderIdError, OptimisticLockError


class InMemoryBookingRepo(BookingRepo):
    """Dict-backed store. Copies on the way in and out, like a real database row."""

    def __init__(self) -> None:
        self.bookings: dict[str, Booking] = {}

    async def create(self, booking: Booking) -> None:
        if booking.order_id in self.bookings:
            raise DuplicateOrderIdError(booking.order_id)
        self.bookings[booking.order_id] = deepcopy(booking)

    async def get_by_transaction_id(self, transaction_id: str) -> Booking | None:
        booking = self.bookings.get(transaction_id)
        return deepcopy(booking) if booking else None

    async def get_by_id(self, booking_id: str) -> Booking | None:
        for booking in self.bookings.values():
            if booking.id == booking_id:
                return deepcopy(booking)
        return None

    async def save(self, booking: Booking) -> Booking:
        stored = self.bookings.get(booking.order_id)
        if stored is None:
            raise OptimisticLockError(booking.order_id, booking.version, None)
        if stored.version != booking.version:
            raise OptimisticLockError(booking.order_id, booking.version, stored.version)
        booking.version += 1
        self.bookings[booking.order_id] = deepcopy(booking)
        return booking

    async def list_awaiting_payment(
        self,
        payment_methods: Sequence[str] | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[Booking]:
        result = []
        for booking in self.bookings.values():
            if not booking.is_awaiting_payment:
                continue
            if payment_methods is not None and booking.payment.payment_method not in payment_methods:
                continue
            if created_after is not None and (booking.created_at is None or booking.created_at < created_after):
                continue
            if created_before is not None and (booking.created_at is None or booking.created_at >= created_before):
                continue
            result.append(deepcopy(booking))
        return sorted(result, key=lambda b: b.created_at.timestamp() if b.created_at else 0)

    async def list_by_user(
        self,
        user_id: str,
        booking_type: str | None = None,
        booking_status: str | None = None,
    ) -> list[Booking]:
        result = [
            deepcopy(booking)
            for booking in self.bookings.values()
            if booking.user_id == user_id
            and (booking_type is None or booking.booking_type.value == booking_type)
            and (booking_status is None or booking.booking_status.value == booking_status)
        ]
        return sorted(result, key=lambda b: b.created_at.timestamp() if b.created_at else 0, reverse=True)
