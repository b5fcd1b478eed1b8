from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from app.application.dtos.booking_dto import BookingDTO, BookingPageDTO


class BookingResponse(BaseModel):
    id: str
    booking_type: str
    booking_status: str
    details: dict[str, Any]
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
    def from_dto(cls, dto: BookingDTO) -> "BookingResponse":
        return cls(**dto.__dict__)


class PaginationResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class BookingListResponse(BaseModel):
    success: bool = True
    data: list[BookingResponse]
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: BookingPageDTO) -> "BookingListResponse":
        return cls(
            data=[BookingResponse.from_dto(item) for item in page.items],
            pagination=PaginationResponse(
                total=page.total,
                page=page.page,
                limit=page.limit,
                total_pages=page.total_pages,
            ),
        )


class BookingDetailResponse(BaseModel):
    success: bool = True
    data: BookingResponse
