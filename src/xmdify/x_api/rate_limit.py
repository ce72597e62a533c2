"""Client-side request pacing for the X API.

:class:`AsyncTokenBucket` spaces requests at ``rate`` per second.  When X
reports an exhausted window (``x-rate-limit-remaining: 0``) the transport
calls :meth:`AsyncTokenBucket.hold` so that no further request leaves before
the announced reset, instead of spending an attempt on a certain ``429``.
"""

from __future__ import annotations

import asyncio
import time


class AsyncTokenBucket:
    """Token bucket shared by every request of one transport.

    Parameters
    ----------
    rate_rps:
        Refill rate in tokens per second.
    burst:
        Capacity of the bucket; also its initial fill.
    """

    __slots__ = ("_lock", "burst", "last_refill", "rate", "resume_at", "tokens")

    def __init__(self, rate_rps: float, burst: int = 1) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")

        self.rate: float = rate_rps
        self.burst: int = burst
        self.tokens: float = float(burst)
        self.last_refill: float = time.monotonic()
        # Monotonic deadline set by hold(); 0.0 means not held.
        self.resume_at: float = 0.0
        self._lock = asyncio.Lock()

    def hold(self, seconds: float) -> None:
        """Keep every :meth:`acquire` waiting for *seconds* from now.

        A shorter hold never cuts an existing longer one short.
        """
        if seconds > 0:
            self.resume_at = max(self.resume_at, time.monotonic() + seconds)

    async def acquire(self, tokens: int = 1) -> float:
        """Take *tokens* and return how long the caller waited, in seconds."""
        async with self._lock:
            now = time.monotonic()
            self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
            self.last_refill = now
            held = max(0.0, self.resume_at - now)

            if self.tokens >= tokens:
                self.tokens -= tokens
                wait = held
            else:
                wait = max(held, (tokens - self.tokens) / self.rate)
                self.tokens = 0.0

        if wait > 0:
            await asyncio.sleep(wait)
        return wait
