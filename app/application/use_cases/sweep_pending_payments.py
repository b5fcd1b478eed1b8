import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.payment_gateway import GatewayStatus, PaymentGateway
from app.application.use_cases.reconcile_payment import ReconciliationEngine, ReconciliationOutcome
from app.domain.entities.booking import Booking
from app.domain.errors import DomainError
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector

EXPIRY_REASON = "Payment not received within the pending window"
STALE_COMMIT_REASON = "Provider commit never finished, manual review required"


@dataclass
class SweepReport:
    polled: int = 0
    reconciled: int = 0
    expired: int = 0
    skipped_in_flight: int = 0
    stale_commits: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "polled": self.polled,
            "reconciled": self.reconciled,
            "expired": self.expired,
            "skipped_in_flight": self.skipped_in_flight,
            "stale_commits": self.stale_commits,
            "errors": list(self.errors),
        }


class SweepPendingPaymentsUseCase:
    """
    Periodic pass over bookings still waiting for payment.

    1. Bookings of pollable gateways younger than the pending window are
       queried and any settled status is applied.
    2. Bookings of every gateway older than the window get a last status
       check, then their gateway order is closed and the booking cancelled.

    Bookings whose commit claim is older than the claim timeout were
    interrupted mid-commit; they are failed and flagged for manual review.
    Younger claims are left to the worker that holds them.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        gateway_selector: PaymentGatewaySelector,
        reconciliation_engine: ReconciliationEngine,
        clock: Clock,
        pending_window_minutes: int = 10,
        commit_claim_timeout_minutes: int = 30,
    ) -> None:
        self._booking_repo = booking_repo
        self._gateway_selector = gateway_selector
        self._engine = reconciliation_engine
        self._clock = clock
        self._pending_window = timedelta(minutes=pending_window_minutes)
        self._claim_timeout = timedelta(minutes=commit_claim_timeout_minutes)
        self._logger = logging.getLogger(__name__)

    async def execute(self, now: datetime | None = None) -> SweepReport:
        now = now or self._clock.now()
        cutoff = now - self._pending_window
        report = SweepReport()

        for gateway in self._gateway_selector.pollable():
            bookings = await self._booking_repo.list_awaiting_payment(
                payment_methods=[gateway.payment_method],
                created_after=cutoff,
            )
            for booking in bookings:
                await self._poll(gateway, booking, now, report)

        stale = await self._booking_repo.list_awaiting_payment(created_before=cutoff)
        for booking in stale:
            await self._expire(booking, now, report)

        if report.polled or report.expired or report.stale_commits or report.errors:
            self._logger.info("Pending payment sweep finished", extra=report.as_dict())
        return report

    async def _poll(self, gateway: PaymentGateway, booking: Booking, now: datetime, report: SweepReport) -> None:
        if booking.is_commit_in_flight:
            await self._check_claim(booking, now, report)
            return
        report.polled += 1
        try:
            status = await gateway.query_order_status(booking.order_id, booking.payment.gateway_order_id)
            if status.status is None:
                self._logger.warning(
                    "Unknown status from gateway poll",
                    extra={"order_id": booking.order_id, "gateway": gateway.name, "raw_status": status.raw_status},
                )
                return
            if status.status in (GatewayStatus.SUCCESS, GatewayStatus.FAILED, GatewayStatus.PROCESSING):
                result = await self._engine.apply_polled_status(booking, status.status, status.gateway_payment_id)
                if result.outcome not in (ReconciliationOutcome.IGNORED, ReconciliationOutcome.IN_FLIGHT):
                    report.reconciled += 1
        except DomainError as exc:
            self._logger.warning(
                "Payment poll failed",
                extra={"order_id": booking.order_id, "gateway": gateway.name, "error": exc.message},
            )
            report.errors.append(f"{booking.order_id}: {exc.message}")

    async def _expire(self, booking: Booking, now: datetime, report: SweepReport) -> None:
        if booking.is_commit_in_flight:
            await self._check_claim(booking, now, report)
            return

        gateway = self._gateway_selector.for_payment_method(booking.payment.payment_method)
        try:
            if gateway and await self._settled_at_gateway(gateway, booking, report):
                return
            if gateway:
                await self._close_quietly(gateway, booking)
            result = await self._engine.expire_booking(booking, EXPIRY_REASON)
            if result.outcome == ReconciliationOutcome.CANCELLED:
                report.expired += 1
        except DomainError as exc:
            self._logger.warning(
                "Expiring booking failed",
                extra={"order_id": booking.order_id, "error": exc.message},
            )
            report.errors.append(f"{booking.order_id}: {exc.message}")

    async def _settled_at_gateway(self, gateway: PaymentGateway, booking: Booking, report: SweepReport) -> bool:
        """Last check so a late payment is committed instead of cancelled."""
        if not gateway.supports_polling and not booking.payment.gateway_order_id:
            return False
        try:
            status = await gateway.query_order_status(booking.order_id, booking.payment.gateway_order_id)
        except DomainError as exc:
            self._logger.info(
                "Final status check failed, expiring anyway",
                extra={"order_id": booking.order_id, "gateway": gateway.name, "error": exc.message},
            )
            return False
        if status.status != GatewayStatus.SUCCESS:
            return False
        await self._engine.apply_polled_status(booking, status.status, status.gateway_payment_id)
        report.reconciled += 1
        return True

    async def _close_quietly(self, gateway: PaymentGateway, booking: Booking) -> None:
        try:
            await gateway.close_order(booking.order_id, booking.payment.gateway_order_id)
        except DomainError as exc:
            self._logger.warning(
                "Closing gateway order failed",
                extra={"order_id": booking.order_id, "gateway": gateway.name, "error": exc.message},
            )

    async def _check_claim(self, booking: Booking, now: datetime, report: SweepReport) -> None:
        if now - booking.commit_started_at < self._claim_timeout:
            report.skipped_in_flight += 1
            return
        try:
            result = await self._engine.fail_stale_commit(booking, STALE_COMMIT_REASON)
        except DomainError as exc:
            self._logger.warning(
                "Failing stale commit claim failed",
                extra={"order_id": booking.order_id, "error": exc.message},
            )
            report.errors.append(f"{booking.order_id}: {exc.message}")
            return
        if result.outcome == ReconciliationOutcome.COMMIT_FAILED:
            report.stale_commits += 1
