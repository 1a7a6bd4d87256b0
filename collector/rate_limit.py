"""Pacing for calls to rate-limited collaborators."""
import asyncio
from typing import Awaitable, Callable


class FixedIntervalGate:
    """
    Fixed-interval throttle.

    `pause()` is awaited after every guarded call, successful or not, so a
    burst of failures never speeds up or slows down the pace.
    """

    def __init__(
        self,
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self.interval = interval
        self._sleep = sleep
        self.pauses = 0

    async def pause(self) -> None:
        """Wait out the interval before the next call may start."""
        self.pauses += 1
        if self.interval > 0:
            await self._sleep(self.interval)
