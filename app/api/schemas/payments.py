from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.application.dtos.order_dto import CreateOrderCommand, CreateOrderResult, PaymentStatusDTO


class CreateOrderRequest(BaseModel):
    """Accepts both camelCase (web client) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: Decimal
    currency: str
    booking_type: str

    flight_offers: list[dict[str, Any]] | None = None
    travelers: list[dict[str, Any]] | None = None

    car_offer_id: str | None = None
    passengers: list[dict[str, Any]] | None = None
    note: str | None = None
    start_connected_segment: dict[str, Any] | None = None
    end_connected_segment: dict[str, Any] | None = None

    quote_id: str | None = None
    guests: list[dict[str, Any]] | None = None
    email: str | None = None
    phone_number: str | None = None
    stay_special_requests: str | None = None

    package: dict[str, Any] | None = None

    pay_currency: str | None = None

    def to_command(self) -> CreateOrderCommand:
        return CreateOrderCommand(**self.model_dump())


class GatewayOrderResponse(BaseModel):
    gateway: str
    gateway_order_id: str | None = None
    checkout_url: str | None = None
    response: dict[str, Any] = Field(default_factory=dict)


class CreateOrderData(BaseModel):
    order_id: str
    booking_id: str
    gateway_order: GatewayOrderResponse

    @classmethod
    def from_result(cls, result: CreateOrderResult) -> "CreateOrderData":
        return cls(
            order_id=result.order_id,
            booking_id=result.booking_id,
            gateway_order=GatewayOrderResponse(
                gateway=result.gateway,
                gateway_order_id=result.gateway_order_id,
                checkout_url=result.checkout_url,
                response=result.gateway_response,
            ),
        )


class CreateOrderResponse(BaseModel):
    success: bool = True
    message: str
    data: CreateOrderData


class PaymentStatusRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str | None = None


class PaymentStatusResponse(BaseModel):
    order_id: str
    booking_status: str
    payment_status: str
    gateway_status: str | None = None
    gateway_raw_status: str | None = None

    @classmethod
    def from_dto(cls, dto: PaymentStatusDTO) -> "PaymentStatusResponse":
        return cls(
            order_id=dto.order_id,
            booking_status=dto.booking_status,
            payment_status=dto.payment_status,
            gateway_status=dto.gateway_status,
            gateway_raw_status=dto.gateway_raw_status,
        )


class CurrencyResponse(BaseModel):
    id: int | str | None = None
    code: str | None = None
    name: str | None = None
    enable: bool | None = None
    logo_url: str | None = None
    ticker: str | None = None
    network: str | None = None


class CurrencyListResponse(BaseModel):
    success: bool = True
    message: str = "Currencies get successful"
    data: list[CurrencyResponse]
