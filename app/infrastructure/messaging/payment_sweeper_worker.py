"""Background worker that runs the pending payment sweep on an interval."""

import asyncio
import logging
from uuid import uuid4

from app.application.use_cases.sweep_pending_payments import SweepPendingPaymentsUseCase

logger = logging.getLogger(__name__)


class PaymentSweeperWorker:
    """
    Polls pollable gateways and expires stale bookings every `interval_seconds`.

    - A failing sweep is logged and the loop carries on with the next tick
    - `stop()` wakes the loop immediately instead of waiting out the interval
    """

    def __init__(
        self,
        sweep_use_case: SweepPendingPaymentsUseCase,
        interval_seconds: float = 30.0,
        worker_id: str | None = None,
    ) -> None:
        self._sweep = sweep_use_case
        self._interval = interval_seconds
        self._worker_id = worker_id or f"sweeper-{uuid4().hex[:8]}"
        self._stop_event = asyncio.Event()
        self._running = False
        self._runs = 0

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def runs(self) -> int:
        return self._runs

    async def run_once(self) -> None:
        try:
            await self._sweep.execute()
        except Exception:
            logger.exception("Pending payment sweep failed", extra={"worker_id": self._worker_id})
        finally:
            self._runs += 1

    async def start(self) -> None:
        self._running = True
        self._stop_event.clear()
        logger.info("Payment sweeper started", extra={"worker_id": self._worker_id, "interval": self._interval})
        try:
            while not self._stop_event.is_set():
                await self.run_once()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info("Payment sweeper stopped", extra={"worker_id": self._worker_id})

    async def stop(self) -> None:
        self._stop_event.set()
