"""Time source used by polling loops.

The settlement monitor never calls ``time`` or ``asyncio.sleep`` directly;
it goes through a ``Clock`` so tests can advance simulated time instantly.
"""

import asyncio
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Monotonic time plus a cooperative sleep."""

    @abstractmethod
    def now(self) -> float:
        """Seconds on a monotonic scale."""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling flow for ``seconds``."""
        pass


class SystemClock(Clock):
    """Real clock backed by the event loop."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
