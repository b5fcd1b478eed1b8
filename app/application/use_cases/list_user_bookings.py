import math

from app.application.dtos.booking_dto import BookingDTO, BookingPageDTO
from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import BookingStatus
from app.domain.entities.booking_details import BookingType
from app.domain.errors import AuthError, BookingNotFoundError, ValidationError

MAX_PAGE_SIZE = 100


class ListUserBookingsUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(
        self,
        user_id: str | None,
        booking_type: str | None = None,
        booking_status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookingPageDTO:
        if not user_id:
            raise AuthError()
        if booking_type and booking_type not in {t.value for t in BookingType}:
            raise ValidationError("booking_type", f"unsupported booking type '{booking_type}'")
        if booking_status and booking_status not in {s.value for s in BookingStatus}:
            raise ValidationError("booking_status", f"unsupported booking status '{booking_status}'")
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        bookings = await self._booking_repo.list_by_user(
            user_id, booking_type=booking_type, booking_status=booking_status
        )
        total = len(bookings)
        total_pages = math.ceil(total / limit) if total else 0
        page = max(1, min(page, total_pages or 1))
        start = (page - 1) * limit
        return BookingPageDTO(
            items=[BookingDTO.from_entity(b) for b in bookings[start : start + limit]],
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
        )


class GetUserBookingUseCase:
    def __init__(self, booking_repo: BookingRepo) -> None:
        self._booking_repo = booking_repo

    async def execute(self, user_id: str | None, booking_id: str) -> BookingDTO:
        if not user_id:
            raise AuthError()
        booking = await self._booking_repo.get_by_id(booking_id)
        if not booking or booking.user_id != user_id:
            raise BookingNotFoundError(booking_id)
        return BookingDTO.from_entity(booking)
