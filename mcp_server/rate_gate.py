import asyncio
import time
from typing import Awaitable, Callable, Optional

from utils.logger import log_debug


class RateGate:
    """Minimum-interval gate for outbound calls.

    wait() returns no sooner than ``min_interval`` seconds after the previous
    wait() returned. Callers pass through one at a time.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = max(0.0, float(min_interval))
        self.clock = clock
        self.sleep = sleep
        self.last_request_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config) -> "RateGate":
        return cls(float(config.get("rate_limit_delay_ms", 600)) / 1000.0)

    async def wait(self) -> float:
        """Block until the interval has passed; return the recorded start time."""

        async with self._lock:
            if self.last_request_at is not None:
                deadline = self.last_request_at + self.min_interval
                now = self.clock()
                if now < deadline:
                    log_debug(f"Rate gate: waiting {(deadline - now) * 1000:.0f}ms")
                # Loop: event loop timers may fire a clock tick early.
                while now < deadline:
                    await self.sleep(deadline - now)
                    now = self.clock()
            self.last_request_at = self.clock()
            return self.last_request_at
