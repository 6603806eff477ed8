# --- Standard library imports ---
import time
import asyncio
import math


class IntervalTicker:
    """
    Fixed-rate clock for the probe loops.

    The first tick fires immediately. Ticks stay on the original
    start + k * period grid, so probe latency does not push the
    schedule back. When a tick is missed because the caller overran,
    the next one fires immediately and the missed slots are skipped,
    never queued.
    """

    def __init__(self, period: float, clock=time.monotonic, sleep=asyncio.sleep):
        self.period = period
        self.clock = clock
        self.sleep = sleep
        self._deadline: float | None = None
        self.skipped = 0

    async def tick(self) -> float:
        """Wait for the next tick and return the time it fired."""
        now = self.clock()
        if self._deadline is None:
            self._deadline = now

        delay = self._deadline - now
        if delay > 0:
            await self.sleep(delay)
            fired = self._deadline
        else:
            fired = now

        self._deadline += self.period
        if self._deadline <= now:
            missed = math.floor((now - self._deadline) / self.period) + 1
            self.skipped += missed
            self._deadline += missed * self.period
        return fired
