import logging

from app.application.dtos.order_dto import CreateOrderCommand, CreateOrderResult
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.notifier import NotificationEvent, Notifier
from app.application.interfaces.order_id_generator import OrderIdGenerator
from app.application.interfaces.payment_gateway import GatewayOrderRequest
from app.application.interfaces.user_directory import UserDirectory
from app.application.use_cases.booking_processor import BookingProcessor
from app.domain.errors import AuthError, GatewayError, OptimisticLockError, ValidationError
from app.domain.value_objects.money import Money
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector


class CreateOrderUseCase:
    """
    Persists a pending booking and issues the gateway order for it.

    A gateway failure leaves the pending booking in place; the sweeper
    expires it once the pending window closes.
    """

    def __init__(
        self,
        booking_processor: BookingProcessor,
        booking_repo: BookingRepo,
        gateway_selector: PaymentGatewaySelector,
        order_id_generator: OrderIdGenerator,
        user_directory: UserDirectory,
        notifier: Notifier,
        clock: Clock,
    ) -> None:
        self._booking_processor = booking_processor
        self._booking_repo = booking_repo
        self._gateway_selector = gateway_selector
        self._order_id_generator = order_id_generator
        self._user_directory = user_directory
        self._notifier = notifier
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        gateway_name: str,
        user_id: str | None,
        command: CreateOrderCommand,
    ) -> CreateOrderResult:
        if not user_id:
            raise AuthError()
        gateway = self._gateway_selector.for_name(gateway_name)

        try:
            amount = Money(amount=command.amount, currency_code=command.currency)
        except ValueError as exc:
            raise ValidationError("amount", str(exc)) from exc

        contact = await self._user_directory.get_contact(user_id)
        order_id = self._order_id_generator.generate()
        request = GatewayOrderRequest(
            order_id=order_id,
            amount=amount,
            booking_type=command.booking_type,
            user_id=user_id,
            customer_email=(contact.email if contact else None) or command.email,
            pay_currency=command.pay_currency,
        )
        gateway.validate_order_request(request)

        booking = await self._booking_processor.create_pending_booking(
            user_id=user_id,
            order_id=order_id,
            booking_type=command.booking_type,
            payload=command.type_payload(),
            amount=amount.amount,
            currency=amount.currency_code,
            payment_method=gateway.payment_method,
        )

        try:
            gateway_order = await gateway.create_order(request)
        except GatewayError:
            self._logger.error(
                "Gateway order creation failed, booking left pending",
                extra={"order_id": order_id, "gateway": gateway.name, "stage": "create_order"},
            )
            raise

        if gateway_order.gateway_order_id:
            await self._attach_gateway_order(order_id, gateway_order.gateway_order_id)

        self._logger.info(
            "Gateway order created",
            extra={
                "order_id": order_id,
                "gateway": gateway.name,
                "gateway_order_id": gateway_order.gateway_order_id,
            },
        )
        try:
            await self._notifier.notify(booking, NotificationEvent.ORDER_INITIATED)
        except Exception:
            self._logger.exception("Notification failed", extra={"order_id": order_id})

        return CreateOrderResult(
            order_id=order_id,
            booking_id=booking.id,
            gateway=gateway.name,
            gateway_order_id=gateway_order.gateway_order_id,
            checkout_url=gateway_order.checkout_url,
            gateway_response=gateway_order.raw,
        )

    async def _attach_gateway_order(self, order_id: str, gateway_order_id: str) -> None:
        """Best effort: a webhook may already have moved the booking on."""
        booking = await self._booking_repo.get_by_transaction_id(order_id)
        if not booking or booking.is_terminal or booking.payment.gateway_order_id:
            return
        booking.attach_gateway_order(gateway_order_id, self._clock.now())
        try:
            await self._booking_repo.save(booking)
        except OptimisticLockError:
            self._logger.warning(
                "Booking changed before the gateway order id was stored",
                extra={"order_id": order_id, "gateway_order_id": gateway_order_id},
            )
