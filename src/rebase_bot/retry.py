"""Retry-until-success wrapper for remote reads.

Every failure is treated the same way: log, wait a fixed delay, call again.
There is no attempt cap and no backoff, so a permanently broken endpoint
stalls the caller until the process is stopped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

log = logging.getLogger("rb.retry")

T = TypeVar("T")

RETRY_DELAY_SEC = 2.0


class RetryExecutor:
    def __init__(
        self,
        delay: float = RETRY_DELAY_SEC,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._delay = delay
        self._sleep = sleep
        self.retries = 0

    @property
    def delay(self) -> float:
        return self._delay

    async def execute(self, operation: Callable[[], Awaitable[T]], what: str = "remote call") -> T:
        """Await *operation()* until it returns without raising."""
        while True:
            try:
                return await operation()
            except Exception as e:
                self.retries += 1
                log.warning(
                    "RETRY │ %s failed (%s: %s), pausing %.0fs to try again",
                    what, type(e).__name__, e, self._delay,
                )
            await self._sleep(self._delay)
