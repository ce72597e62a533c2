"""Metrics hook protocol and no-op default implementation.

xmdify emits counters and timings at a few key points.  By default a
:class:`NoopMetricsHook` is used so there is zero overhead; pass any object
satisfying :class:`MetricsHook` as ``XmdifyConfig.metrics`` to route the data
points to a real backend.

Emitted metric names:

* ``xmdify.requests_total``             -- counter
* ``xmdify.retries_total``              -- counter
* ``xmdify.rate_limited_total``         -- counter
* ``xmdify.request_duration_ms``        -- timing
* ``xmdify.rate_limit_wait_ms``         -- timing
* ``xmdify.referenced_tweets_total``    -- counter (``status=ok|failed``)
* ``xmdify.conversion_warnings_total``  -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
