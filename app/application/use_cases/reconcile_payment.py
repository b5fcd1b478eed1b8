import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.notifier import NotificationEvent, Notifier
from app.application.interfaces.payment_gateway import GatewayStatus, WebhookAck
from app.application.use_cases.booking_processor import BookingProcessor
from app.domain.entities.booking import Booking, PaymentStatus
from app.domain.errors import BookingNotFoundError, OptimisticLockError, SignatureError
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector

MAX_CONFLICT_RETRIES = 3


class ReconciliationOutcome(str, Enum):
    IGNORED = "IGNORED"
    DUPLICATE = "DUPLICATE"
    IN_FLIGHT = "IN_FLIGHT"
    PROCESSING = "PROCESSING"
    COMMIT_CLAIMED = "COMMIT_CLAIMED"
    CONFIRMED = "CONFIRMED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    COMMIT_FAILED = "COMMIT_FAILED"
    CANCELLED = "CANCELLED"


@dataclass
class ReconciliationResult:
    order_id: str
    outcome: ReconciliationOutcome
    booking: Booking


class ReconciliationEngine:
    """
    Payment status state machine.

    Every webhook, poll result and expiry goes through here. Writes are
    conditional on the booking version; conflicts before the commit claim are
    retried against a fresh copy. Once the claim is saved, the provider
    commit runs exactly once and its outcome is persisted as a terminal state.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        booking_processor: BookingProcessor,
        notifier: Notifier,
        gateway_selector: PaymentGatewaySelector,
        clock: Clock,
    ) -> None:
        self._booking_repo = booking_repo
        self._booking_processor = booking_processor
        self._notifier = notifier
        self._gateway_selector = gateway_selector
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    # === Entry points ===

    async def apply_webhook_event(
        self,
        gateway_name: str,
        headers: Mapping[str, str],
        raw_body: bytes,
    ) -> WebhookAck:
        """
        Verifies, parses and applies a gateway webhook.

        The signature is checked before anything is read from the store.

        Raises:
            UnknownGatewayError: gateway not enabled.
            SignatureError: signature missing or wrong.
            ValidationError / UnknownStatusError: malformed body or status.
            BookingNotFoundError: no booking for the order id.
        """
        gateway = self._gateway_selector.for_name(gateway_name)
        if not gateway.verify_webhook_signature(headers, raw_body):
            self._logger.warning(
                "Webhook signature rejected",
                extra={"gateway": gateway.name, "stage": "verify_signature"},
            )
            raise SignatureError(gateway.name)

        event = gateway.parse_webhook_event(raw_body)
        result = await self.apply_status(
            event.order_id,
            event.status,
            gateway_payment_id=event.gateway_payment_id,
            source=f"webhook:{gateway.name}",
        )
        self._logger.info(
            "Webhook applied",
            extra={
                "order_id": event.order_id,
                "gateway": gateway.name,
                "raw_status": event.raw_status,
                "outcome": result.outcome.value,
            },
        )
        return gateway.webhook_ack(event)

    async def apply_status(
        self,
        order_id: str,
        status: GatewayStatus,
        gateway_payment_id: str | None = None,
        source: str = "event",
    ) -> ReconciliationResult:
        booking = await self._booking_repo.get_by_transaction_id(order_id)
        if not booking:
            raise BookingNotFoundError(order_id)
        return await self._apply(booking, status, gateway_payment_id, source)

    async def apply_polled_status(
        self,
        booking: Booking,
        status: GatewayStatus,
        gateway_payment_id: str | None = None,
    ) -> ReconciliationResult:
        return await self._apply(booking, status, gateway_payment_id, source="poll")

    async def expire_booking(self, booking: Booking, reason: str) -> ReconciliationResult:
        """Cancels a booking whose payment never arrived."""
        context = {"order_id": booking.order_id, "stage": "expire"}
        for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
            if booking.is_terminal:
                return ReconciliationResult(booking.order_id, ReconciliationOutcome.IGNORED, booking)
            if booking.is_commit_in_flight:
                return ReconciliationResult(booking.order_id, ReconciliationOutcome.IN_FLIGHT, booking)
            booking.cancel(reason, self._clock.now())
            try:
                booking = await self._booking_repo.save(booking)
                break
            except OptimisticLockError:
                if attempt == MAX_CONFLICT_RETRIES:
                    self._logger.error("Expiry kept conflicting, giving up", extra=context)
                    raise
                booking = await self._reload(booking.order_id)

        self._logger.info("Booking expired", extra={**context, "reason": reason})
        await self._notify(booking, NotificationEvent.BOOKING_CANCELLED)
        return ReconciliationResult(booking.order_id, ReconciliationOutcome.CANCELLED, booking)

    async def fail_stale_commit(self, booking: Booking, reason: str) -> ReconciliationResult:
        """Fails a booking whose commit claim was never settled; the provider side needs manual review."""
        context = {"order_id": booking.order_id, "stage": "stale_commit"}
        if not booking.is_commit_in_flight:
            return ReconciliationResult(booking.order_id, ReconciliationOutcome.IGNORED, booking)

        booking = await self._settle(booking, lambda b, now: b.fail(reason, now), context)
        if booking.failure_reason != reason:
            return ReconciliationResult(booking.order_id, ReconciliationOutcome.IGNORED, booking)

        self._logger.error(
            "Commit claim expired, booking failed for manual review",
            extra={**context, "commit_started_at": str(booking.commit_started_at)},
        )
        await self._notify(booking, NotificationEvent.PAYMENT_FAILED)
        return ReconciliationResult(booking.order_id, ReconciliationOutcome.COMMIT_FAILED, booking)

    # === State machine ===

    async def _apply(
        self,
        booking: Booking,
        status: GatewayStatus,
        gateway_payment_id: str | None,
        source: str,
    ) -> ReconciliationResult:
        context = {"order_id": booking.order_id, "source": source, "status": status.value}
        for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
            try:
                result = await self._advance(booking, status, gateway_payment_id, context)
                break
            except OptimisticLockError:
                if attempt == MAX_CONFLICT_RETRIES:
                    self._logger.error(
                        "Booking update kept conflicting, giving up",
                        extra={**context, "attempts": attempt},
                    )
                    raise
                self._logger.warning(
                    "Concurrent booking update, reloading",
                    extra={**context, "attempt": attempt},
                )
                booking = await self._reload(booking.order_id)

        if result.outcome != ReconciliationOutcome.COMMIT_CLAIMED:
            return result
        return await self._commit_and_settle(result.booking, gateway_payment_id, context)

    async def _advance(
        self,
        booking: Booking,
        status: GatewayStatus,
        gateway_payment_id: str | None,
        context: dict[str, Any],
    ) -> ReconciliationResult:
        """Applies everything up to and including the commit claim."""
        order_id = booking.order_id

        if booking.is_terminal:
            return self._on_terminal(booking, status, gateway_payment_id, context)

        if booking.is_commit_in_flight:
            self._logger.info("Commit in flight, event ignored", extra=context)
            return ReconciliationResult(order_id, ReconciliationOutcome.IN_FLIGHT, booking)

        now = self._clock.now()

        if status == GatewayStatus.PENDING:
            return ReconciliationResult(order_id, ReconciliationOutcome.IGNORED, booking)

        if status == GatewayStatus.PROCESSING:
            if booking.payment.payment_status == PaymentStatus.PROCESSING:
                return ReconciliationResult(order_id, ReconciliationOutcome.IGNORED, booking)
            booking.mark_processing(now)
            booking = await self._booking_repo.save(booking)
            return ReconciliationResult(order_id, ReconciliationOutcome.PROCESSING, booking)

        if status == GatewayStatus.FAILED:
            booking.fail("Payment failed at gateway", now)
            booking = await self._booking_repo.save(booking)
            self._logger.info("Payment failed", extra=context)
            await self._notify(booking, NotificationEvent.PAYMENT_FAILED)
            return ReconciliationResult(order_id, ReconciliationOutcome.PAYMENT_FAILED, booking)

        booking.claim_commit(now)
        booking = await self._booking_repo.save(booking)
        return ReconciliationResult(order_id, ReconciliationOutcome.COMMIT_CLAIMED, booking)

    def _on_terminal(
        self,
        booking: Booking,
        status: GatewayStatus,
        gateway_payment_id: str | None,
        context: dict[str, Any],
    ) -> ReconciliationResult:
        order_id = booking.order_id
        if status != GatewayStatus.SUCCESS:
            self._logger.info("Event ignored on terminal booking", extra=context)
            return ReconciliationResult(order_id, ReconciliationOutcome.IGNORED, booking)

        if booking.payment.payment_status != PaymentStatus.COMPLETED:
            self._logger.error(
                "Payment succeeded on a closed booking, needs manual review",
                extra={**context, "booking_status": booking.booking_status.value},
            )
            return ReconciliationResult(order_id, ReconciliationOutcome.IGNORED, booking)

        stored_payment_id = booking.payment.gateway_payment_id
        if gateway_payment_id and stored_payment_id and gateway_payment_id != stored_payment_id:
            self._logger.warning(
                "Success event carries a different gateway payment id",
                extra={
                    **context,
                    "stored_payment_id": stored_payment_id,
                    "event_payment_id": gateway_payment_id,
                },
            )
        else:
            self._logger.info("Duplicate success event ignored", extra=context)
        return ReconciliationResult(order_id, ReconciliationOutcome.DUPLICATE, booking)

    async def _commit_and_settle(
        self,
        booking: Booking,
        gateway_payment_id: str | None,
        context: dict[str, Any],
    ) -> ReconciliationResult:
        try:
            commit = await self._booking_processor.commit(booking.order_id)
        except asyncio.CancelledError:
            self._logger.error(
                "Provider commit interrupted, claim left for the sweeper",
                extra={**context, "stage": "commit"},
            )
            raise
        except Exception as exc:
            self._logger.exception("Provider commit failed", extra={**context, "stage": "commit"})
            reason = f"Commit failed: {exc}"
            booking = await self._settle(booking, lambda b, now: b.fail(reason, now), context)
            await self._notify(booking, NotificationEvent.PAYMENT_FAILED)
            return ReconciliationResult(booking.order_id, ReconciliationOutcome.COMMIT_FAILED, booking)

        booking = await self._settle(
            booking,
            lambda b, now: b.confirm(commit.details, gateway_payment_id, now),
            context,
        )
        self._logger.info(
            "Booking confirmed",
            extra={**context, "provider_reference": commit.provider_reference},
        )
        await self._notify(booking, NotificationEvent.PAYMENT_SUCCEEDED)
        return ReconciliationResult(booking.order_id, ReconciliationOutcome.CONFIRMED, booking)

    async def _settle(
        self,
        booking: Booking,
        mutate: Callable[[Booking, Any], None],
        context: dict[str, Any],
    ) -> Booking:
        """Persists the post-commit terminal state; never re-runs the commit."""
        for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
            mutate(booking, self._clock.now())
            try:
                return await self._booking_repo.save(booking)
            except OptimisticLockError:
                if attempt == MAX_CONFLICT_RETRIES:
                    self._logger.error(
                        "Could not persist commit outcome, needs manual review",
                        extra={**context, "stage": "settle"},
                    )
                    raise
                booking = await self._reload(booking.order_id)
                if booking.is_terminal:
                    self._logger.warning(
                        "Booking reached a terminal state during commit",
                        extra={**context, "stage": "settle"},
                    )
                    return booking
        return booking

    async def _reload(self, order_id: str) -> Booking:
        booking = await self._booking_repo.get_by_transaction_id(order_id)
        if not booking:
            raise BookingNotFoundError(order_id)
        return booking

    async def _notify(self, booking: Booking, event: NotificationEvent) -> None:
        try:
            await self._notifier.notify(booking, event)
        except Exception:
            self._logger.exception(
                "Notification failed",
                extra={"order_id": booking.order_id, "event": event.value},
            )
