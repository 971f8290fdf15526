"""
Request pacing policies.

Third-party theater sites and search engines block bursts of requests, so
every outbound sequence in the pipeline goes through a pacer instead of
calling ``asyncio.sleep`` inline. Pacers take an injectable clock and sleep
function so tests can run them without waiting.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], float]


class IntervalPacer:
    """
    Enforces a minimum interval between consecutive operations.

    The first call to ``wait`` returns immediately; later calls sleep just
    long enough that at least ``interval`` seconds separate the previous
    release from this one.
    """

    def __init__(
        self,
        interval: float,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        self.interval = max(0.0, interval)
        self._sleep = sleep
        self._clock = clock
        self._last_release: float | None = None

    async def wait(self) -> None:
        """Sleep as needed to respect the interval, then mark a release."""
        if self._last_release is not None:
            remaining = self.interval - (self._clock() - self._last_release)
            if remaining > 0:
                logger.debug(f"Pacing: sleeping {remaining:.2f}s")
                await self._sleep(remaining)
        self._last_release = self._clock()

    def reset(self) -> None:
        """Forget the last release so the next wait returns immediately."""
        self._last_release = None


class NoPacing(IntervalPacer):
    """Pacer that never sleeps."""

    def __init__(self) -> None:
        super().__init__(0.0)

    async def wait(self) -> None:
        return None
