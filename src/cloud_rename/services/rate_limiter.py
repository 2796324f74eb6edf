"""Global request-start rate limiter shared by all workers of a batch."""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RequestRateLimiter:
    """
    Spaces request *starts* at least ``interval`` seconds apart.

    The limit applies to the aggregate of all callers, not per worker:
    acquisitions are serialised, and each one waits until ``last_start +
    interval`` before recording its own start time.
    """

    def __init__(self, interval: float):
        self.interval = max(0.0, interval)
        self._lock = asyncio.Lock()
        self._last_start: float | None = None

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    async def acquire(self, abort: asyncio.Event | None = None) -> bool:
        """
        Wait for the next request slot.

        Args:
            abort: Optional event that ends the wait early

        Returns:
            True once a slot is recorded, False if ``abort`` was set first
        """
        if not self.enabled:
            return True

        async with self._lock:
            if abort is not None and abort.is_set():
                return False
            if self._last_start is not None:
                delay = self._last_start + self.interval - time.monotonic()
                if delay > 0 and await self._sleep(delay, abort):
                    return False
            self._last_start = time.monotonic()
        return True

    @staticmethod
    async def _sleep(delay: float, abort: asyncio.Event | None) -> bool:
        """Sleep for ``delay`` seconds; True if interrupted by ``abort``."""
        if abort is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(abort.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        logger.debug("Rate limiter wait aborted")
        return True

    def reset(self) -> None:
        self._last_start = None
