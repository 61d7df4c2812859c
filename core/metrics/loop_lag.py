from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from prometheus_client import Gauge

logger = logging.getLogger(__name__)


class EventLoopLagMonitor:
    def __init__(self, gauge: Gauge, interval_seconds: float = 0.5) -> None:
        self._gauge = gauge
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="event-loop-lag-monitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            scheduled = loop.time()
            await asyncio.sleep(self._interval)
            lag = max(0.0, loop.time() - scheduled - self._interval)
            self._gauge.set(lag)
            if lag > self._interval:
                logger.warning("Event loop is lagging", extra={"lag_seconds": round(lag, 4)})
