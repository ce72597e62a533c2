"""Retry policy for the X GraphQL API.

X throttles each GraphQL operation per fixed window and announces the
window on every response:

``x-rate-limit-limit``
    Requests allowed in the current window.
``x-rate-limit-remaining``
    Requests left before the window is exhausted.
``x-rate-limit-reset``
    Epoch second at which the window reopens.

A ``429`` carries the same headers, so the wait before retrying is read
from ``x-rate-limit-reset`` first and from a plain ``Retry-After`` second.
Only when neither is usable does the transport fall back to exponential
backoff.
"""

from __future__ import annotations

import random
import time
from collections.abc import Mapping

import httpx

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Whether attempt number *attempt* (0-based) may be followed by another.

    A raised exception takes precedence over *status_code*: only timeouts
    and connection-level failures are transient.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, _TRANSIENT_ERRORS)
    return status_code in RETRYABLE_STATUSES


def _header_seconds(headers: Mapping[str, str], name: str) -> float | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def rate_limit_delay(headers: Mapping[str, str], now: float | None = None) -> float | None:
    """Seconds to wait until X lifts a throttle, or ``None`` if unannounced.

    Parameters
    ----------
    headers:
        Response headers (``httpx.Headers`` or any case-matching mapping).
    now:
        Current epoch time; defaults to :func:`time.time`.

    ``x-rate-limit-reset`` minus *now*, clamped at zero, wins over
    ``Retry-After``.  HTTP-date ``Retry-After`` values are not understood.
    """
    reset = _header_seconds(headers, "x-rate-limit-reset")
    if reset is not None:
        current = time.time() if now is None else now
        return max(0.0, reset - current)
    retry_after = _header_seconds(headers, "retry-after")
    if retry_after is None:
        return None
    return max(0.0, retry_after)


def window_exhausted(headers: Mapping[str, str]) -> bool:
    """``True`` when the response reports no requests left in the window."""
    remaining = headers.get("x-rate-limit-remaining")
    return remaining is not None and remaining.strip() == "0"


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Delay in seconds before retry number *attempt* (0-based).

    A server-announced *retry_after* is returned unchanged: shortening it
    with jitter would only earn another ``429``.  Otherwise the delay doubles
    from *base* up to *maximum*, and *jitter* scales it into the upper half
    of that value.
    """
    if retry_after is not None:
        return float(retry_after)

    delay = min(base * 2.0 ** attempt, maximum)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay
