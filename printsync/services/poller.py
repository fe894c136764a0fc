"""Fixed-interval background loop that drives pipeline cycles."""

import asyncio
from typing import Optional

from printsync.config import logger
from printsync.services.pipeline import PipelineOrchestrator


class Poller:
    """Calls ``run_cycle`` on a fixed wall-clock interval.

    Ticks missed while a slow cycle was running are dropped rather than
    queued, so at most one cycle is ever pending.
    """

    def __init__(self, orchestrator: PipelineOrchestrator, interval: float = 5.0):
        self.orchestrator = orchestrator
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="printsync-poller")
        logger.info(f"Poller started with a {self.interval}s interval")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        try:
            await self._task
        finally:
            self._task = None
        logger.info("Poller stopped")

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while not self._stopping.is_set():
            await self.tick()

            next_tick += self.interval
            now = loop.time()
            if next_tick < now:
                skipped = int((now - next_tick) // self.interval) + 1
                logger.debug(f"Cycle overran the interval, skipping {skipped} tick(s)")
                next_tick += skipped * self.interval

            try:
                await asyncio.wait_for(self._stopping.wait(), next_tick - now)
            except asyncio.TimeoutError:
                pass

    async def tick(self) -> None:
        """Run one cycle, never letting an error escape into the loop."""
        try:
            await self.orchestrator.run_cycle()
        except Exception:
            logger.exception("Pipeline cycle crashed")
