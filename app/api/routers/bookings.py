from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_user_id, get_use_cases
from app.api.schemas.bookings import BookingDetailResponse, BookingListResponse, BookingResponse

router = APIRouter()


@router.get(
    "/bookings",
    response_model=BookingListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_bookings(
    booking_type: str | None = Query(default=None, alias="bookingType"),
    booking_status: str | None = Query(default=None, alias="bookingStatus"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    user_id: str | None = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> BookingListResponse:
    result = await use_cases["list_user_bookings"].execute(
        user_id=user_id,
        booking_type=booking_type,
        booking_status=booking_status,
        page=page,
        limit=limit,
    )
    return BookingListResponse.from_page(result)


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingDetailResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: str,
    user_id: str | None = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> BookingDetailResponse:
    dto = await use_cases["get_user_booking"].execute(user_id=user_id, booking_id=booking_id)
    return BookingDetailResponse(data=BookingResponse.from_dto(dto))
