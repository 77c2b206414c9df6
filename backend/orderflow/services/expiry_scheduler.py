"""Periodic expiry sweep running inside the API process."""

import asyncio
import logging
from typing import Callable

from orderflow.services.order_fulfillment import OrderFulfillmentService, SweepResult

logger = logging.getLogger(__name__)


class ExpirySweepScheduler:
    """Run ``OrderFulfillmentService.run_expiry_sweep`` on a fixed cadence.

    Each run opens its own session from ``session_factory`` so a failed
    sweep is rolled back and released before the next tick.
    """

    def __init__(self, session_factory: Callable, interval_seconds: float):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Expiry sweep scheduler is already running")
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(f"Expiry sweep scheduled every {self.interval_seconds}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_once(self) -> SweepResult:
        async with self.session_factory() as session:
            return await OrderFulfillmentService(session).run_expiry_sweep()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                result = await self.run_once()
                logger.info(f"Expiry sweep finished, cancelled {result.cancelled_count} order(s)")
            except Exception as e:
                # Keep the schedule alive; the next tick retries from the database state
                logger.error(f"Expiry sweep failed: {e}", exc_info=True)
