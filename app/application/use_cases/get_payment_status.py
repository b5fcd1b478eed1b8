import logging
from typing import Any

from app.application.dtos.order_dto import PaymentStatusDTO
from app.application.interfaces.booking_repo import BookingRepo
from app.domain.errors import BookingNotFoundError, ValidationError
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector


class GetPaymentStatusUseCase:
    """Reports the local payment state next to the gateway's current view."""

    def __init__(self, booking_repo: BookingRepo, gateway_selector: PaymentGatewaySelector) -> None:
        self._booking_repo = booking_repo
        self._gateway_selector = gateway_selector
        self._logger = logging.getLogger(__name__)

    async def execute(self, gateway_name: str, order_id: str | None) -> PaymentStatusDTO:
        gateway = self._gateway_selector.for_name(gateway_name)
        if not order_id:
            raise ValidationError("order_id", "is required")
        booking = await self._booking_repo.get_by_transaction_id(order_id)
        if not booking or booking.payment.payment_method != gateway.payment_method:
            raise BookingNotFoundError(order_id)

        gateway_status = None
        raw_status = None
        if gateway.supports_polling or booking.payment.gateway_order_id:
            result = await gateway.query_order_status(order_id, booking.payment.gateway_order_id)
            gateway_status = result.status.value if result.status else None
            raw_status = result.raw_status

        return PaymentStatusDTO(
            order_id=order_id,
            booking_status=booking.booking_status.value,
            payment_status=booking.payment.payment_status.value,
            gateway_status=gateway_status,
            gateway_raw_status=raw_status,
        )


class ListGatewayCurrenciesUseCase:
    def __init__(self, gateway_selector: PaymentGatewaySelector) -> None:
        self._gateway_selector = gateway_selector

    async def execute(self, gateway_name: str) -> list[dict[str, Any]]:
        return await self._gateway_selector.for_name(gateway_name).list_currencies()
