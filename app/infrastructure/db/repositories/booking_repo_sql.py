from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking, BookingStatus, PaymentDetails, PaymentStatus
from app.domain.entities.booking_details import BookingType, details_from_dict, details_to_dict
from app.domain.errors import DuplicateOrderIdError, OptimisticLockError
from app.infrastructure.db.engine import as_utc, session_scope
from app.infrastructure.db.retry import retry_on_transient
from app.infrastructure.db.tables import bookings

AWAITING_PAYMENT_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value)


class BookingRepoSQL(BookingRepo):
    """
    SQLAlchemy Core store for bookings.

    Each call runs in its own transaction so the repository can be shared by
    request handlers and the background sweeper. `save` is a conditional
    UPDATE on the version column.
    """

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    @staticmethod
    def _values(booking: Booking) -> dict[str, Any]:
        return {
            "user_id": booking.user_id,
            "booking_type": booking.booking_type.value,
            "booking_status": booking.booking_status.value,
            "details": details_to_dict(booking.details),
            "payment_method": booking.payment.payment_method,
            "payment_status": booking.payment.payment_status.value,
            "amount": booking.payment.amount,
            "currency": booking.payment.currency,
            "gateway_order_id": booking.payment.gateway_order_id,
            "gateway_payment_id": booking.payment.gateway_payment_id,
            "commit_started_at": booking.commit_started_at,
            "failure_reason": booking.failure_reason,
            "created_at": booking.created_at,
            "updated_at": booking.updated_at or booking.created_at,
        }

    @staticmethod
    def _to_entity(row) -> Booking:
        booking_type = BookingType(row.booking_type)
        return Booking(
            id=row.id,
            user_id=row.user_id,
            booking_type=booking_type,
            details=details_from_dict(booking_type, row.details),
            payment=PaymentDetails(
                transaction_id=row.order_id,
                payment_method=row.payment_method,
                amount=Decimal(str(row.amount)),
                currency=row.currency,
                payment_status=PaymentStatus(row.payment_status),
                gateway_order_id=row.gateway_order_id,
                gateway_payment_id=row.gateway_payment_id,
            ),
            booking_status=BookingStatus(row.booking_status),
            commit_started_at=as_utc(row.commit_started_at),
            failure_reason=row.failure_reason,
            version=row.version,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )

    async def create(self, booking: Booking) -> None:
        async def _insert():
            async with session_scope(self._session_maker) as session:
                await session.execute(
                    insert(bookings).values(
                        id=booking.id,
                        order_id=booking.order_id,
                        version=booking.version,
                        **self._values(booking),
                    )
                )

        try:
            await retry_on_transient(_insert)
        except IntegrityError as exc:
            raise DuplicateOrderIdError(booking.order_id) from exc

    async def _fetch_one(self, *criteria) -> Booking | None:
        async with session_scope(self._session_maker) as session:
            result = await session.execute(select(bookings).where(*criteria))
            row = result.first()
        return self._to_entity(row) if row else None

    async def get_by_transaction_id(self, transaction_id: str) -> Booking | None:
        return await self._fetch_one(bookings.c.order_id == transaction_id)

    async def get_by_id(self, booking_id: str) -> Booking | None:
        return await self._fetch_one(bookings.c.id == booking_id)

    async def save(self, booking: Booking) -> Booking:
        expected = booking.version

        async def _update() -> int:
            async with session_scope(self._session_maker) as session:
                stmt = (
                    update(bookings)
                    .where(bookings.c.order_id == booking.order_id)
                    .where(bookings.c.version == expected)
                    .values(version=expected + 1, **self._values(booking))
                )
                result = await session.execute(stmt)
                return result.rowcount

        if await retry_on_transient(_update) == 0:
            current = await self.get_by_transaction_id(booking.order_id)
            raise OptimisticLockError(booking.order_id, expected, current.version if current else None)
        booking.version = expected + 1
        return booking

    async def list_awaiting_payment(
        self,
        payment_methods: Sequence[str] | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[Booking]:
        stmt = select(bookings).where(
            bookings.c.booking_status == BookingStatus.PENDING.value,
            bookings.c.payment_status.in_(AWAITING_PAYMENT_STATUSES),
        )
        if payment_methods is not None:
            stmt = stmt.where(bookings.c.payment_method.in_(list(payment_methods)))
        if created_after is not None:
            stmt = stmt.where(bookings.c.created_at >= created_after)
        if created_before is not None:
            stmt = stmt.where(bookings.c.created_at < created_before)
        stmt = stmt.order_by(bookings.c.created_at)
        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.all()]

    async def list_by_user(
        self,
        user_id: str,
        booking_type: str | None = None,
        booking_status: str | None = None,
    ) -> list[Booking]:
        stmt = select(bookings).where(bookings.c.user_id == user_id)
        if booking_type:
            stmt = stmt.where(bookings.c.booking_type == booking_type)
        if booking_status:
            stmt = stmt.where(bookings.c.booking_status == booking_status)
        stmt = stmt.order_by(bookings.c.created_at.desc())
        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.all()]
