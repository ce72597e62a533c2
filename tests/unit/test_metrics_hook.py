"""Tests for the MetricsHook protocol and its wiring.

Covers:
  - Protocol conformance (isinstance, structural subtyping)
  - Metrics wiring through XmdifyConfig to the transport and the client
"""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
from builders import make_article, tweet_entry, tweet_payload

from xmdify import AsyncXmdifyClient
from xmdify.config import XmdifyConfig
from xmdify.observability.metrics import MetricsHook, NoopMetricsHook
from xmdify.x_api.transport import AsyncXTransport

# ---------------------------------------------------------------------------
# Recording hook
# ---------------------------------------------------------------------------


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [entry["name"] for entry in self.increments]


# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestMetricsHookProtocol:
    def test_noop_is_instance_of_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_is_instance_of_protocol(self):
        assert isinstance(RecordingMetricsHook(), MetricsHook)

    def test_class_missing_gauge_is_not_instance(self):
        class PartialHook:
            def increment(self, name, value=1, tags=None):
                pass

            def timing(self, name, ms, tags=None):
                pass

        assert not isinstance(PartialHook(), MetricsHook)

    def test_noop_has_slots(self):
        assert NoopMetricsHook.__slots__ == ()


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


class TestMetricsWiring:
    async def test_transport_reports_to_configured_hook(self):
        hook = RecordingMetricsHook()
        transport = AsyncXTransport(XmdifyConfig(metrics=hook, rate_limit_rps=10_000.0))
        resp = httpx.Response(200, content=b"{}")
        resp.request = httpx.Request("GET", "https://x.com/i/api/graphql/q")
        with patch.object(transport._client, "request", new=AsyncMock(return_value=resp)):
            await transport.request("GET", "/q")
        await transport.close()

        assert "xmdify.requests_total" in hook.names()
        assert [t["name"] for t in hook.timings] == ["xmdify.request_duration_ms"]

    async def test_client_reports_lookup_outcomes(self):
        hook = RecordingMetricsHook()
        lookup = AsyncMock()
        lookup.fetch_tweet.return_value = tweet_payload("1")
        client = AsyncXmdifyClient(lookup=lookup, metrics=hook)

        await client.render_article(make_article(entities=[tweet_entry(0, "1")]))
        await client.close()

        assert hook.increments == [{
            "name": "xmdify.referenced_tweets_total",
            "value": 1,
            "tags": {"status": "ok"},
        }]

    async def test_client_counts_conversion_warnings(self):
        hook = RecordingMetricsHook()
        client = AsyncXmdifyClient(metrics=hook)
        await client.render_article({"not": "an article"})
        await client.close()

        assert hook.increments == [{
            "name": "xmdify.conversion_warnings_total",
            "value": 1,
            "tags": None,
        }]
