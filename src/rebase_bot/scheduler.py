"""Fixed-interval tick driver with a pause gate and a single execution slot.

A beat starts a tick only when the scheduler is not paused and no tick is
in flight. Otherwise the beat is dropped, never queued.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

log = logging.getLogger("rb.scheduler")


class Scheduler:
    def __init__(
        self,
        tick: Callable[[], Awaitable[object]],
        interval_sec: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._tick = tick
        self._interval = interval_sec
        self._sleep = sleep
        self._paused = False
        self._inflight: asyncio.Task | None = None
        self.beats = 0
        self.skipped = 0

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def pause(self) -> None:
        self._paused = True
        log.debug("SCHEDULER │ paused")

    def resume(self) -> None:
        self._paused = False
        log.debug("SCHEDULER │ resumed")

    def fire(self) -> asyncio.Task | None:
        """Start one tick if the gate is open; returns the tick's task."""
        self.beats += 1
        if self._paused or self.busy:
            self.skipped += 1
            log.debug("SCHEDULER │ beat %d skipped (paused=%s busy=%s)", self.beats, self._paused, self.busy)
            return None
        self._inflight = asyncio.create_task(self._run_tick())
        return self._inflight

    async def _run_tick(self) -> None:
        try:
            await self._tick()
        except Exception as e:
            log.exception("SCHEDULER │ tick failed: %s", e)

    async def run(self, max_beats: int | None = None) -> None:
        """Fire immediately, then once per interval until cancelled."""
        log.info("SCHEDULER │ started (interval=%.0fs)", self._interval)
        try:
            while max_beats is None or self.beats < max_beats:
                self.fire()
                await self._sleep(self._interval)
            if self._inflight is not None:
                await self._inflight
        finally:
            if self._inflight is not None and not self._inflight.done():
                self._inflight.cancel()
