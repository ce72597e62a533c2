"""Unit tests for xmdify/x_api/transport.py.

Covers:
- rate-limit header handling (429 wait, exhausted-window hold)
- _raise_for_status
- build_headers / build_cookies
- AsyncXTransport.request (success, 4xx errors, retry logic, metrics)
- AsyncXTransport.close / context manager
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from xmdify.config import XmdifyConfig
from xmdify.errors import (
    XmdifyAuthError,
    XmdifyNetworkError,
    XmdifyNotFoundError,
    XmdifyPermissionError,
    XmdifyRetryExhaustedError,
    XmdifyValidationError,
)
from xmdify.x_api.transport import (
    AsyncXTransport,
    _raise_for_status,
    build_cookies,
    build_headers,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("GET", "https://x.com/i/api/graphql/test")
    return resp


def make_config(**overrides) -> XmdifyConfig:
    """Return an XmdifyConfig tuned for fast, deterministic tests."""
    defaults = dict(
        auth_token="auth-token-1234",
        csrf_token="csrf-token-5678",
        bearer_token="bearer-token-9012",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        # High RPS so the token bucket never blocks during tests.
        rate_limit_rps=10_000.0,
    )
    defaults.update(overrides)
    return XmdifyConfig(**defaults)


class _MockAsyncBucket:
    """Async token bucket stand-in that reports a fixed wait."""

    def __init__(self, wait: float = 0.0):
        self._wait = wait
        self.holds: list[float] = []

    def hold(self, seconds: float) -> None:
        self.holds.append(seconds)

    async def acquire(self, tokens: int = 1) -> float:
        return self._wait


# ---------------------------------------------------------------------------
# Helpers under test
# ---------------------------------------------------------------------------

class TestRaiseForStatus:
    def test_401_raises_auth_error(self):
        with pytest.raises(XmdifyAuthError) as exc_info:
            _raise_for_status(make_response(401, body={}), "GET", "/q")
        assert exc_info.value.context["status_code"] == 401

    def test_403_raises_permission_error(self):
        with pytest.raises(XmdifyPermissionError):
            _raise_for_status(make_response(403, body={}), "GET", "/q")

    def test_404_raises_not_found_error(self):
        with pytest.raises(XmdifyNotFoundError):
            _raise_for_status(make_response(404, body={}), "GET", "/q")

    def test_other_4xx_raises_validation_error(self):
        with pytest.raises(XmdifyValidationError) as exc_info:
            _raise_for_status(make_response(422, body={"x": 1}), "GET", "/q")
        assert exc_info.value.context == {"status_code": 422, "body": {"x": 1}}

    def test_graphql_error_message_extracted(self):
        resp = make_response(400, body={"errors": [{"message": "Bad variables", "code": 214}]})
        with pytest.raises(XmdifyValidationError, match="Bad variables"):
            _raise_for_status(resp, "GET", "/q")

    def test_non_json_body_falls_back_to_text(self):
        resp = httpx.Response(400, content=b"plain failure")
        resp.request = httpx.Request("GET", "https://x.com/i/api/graphql/q")
        with pytest.raises(XmdifyValidationError, match="plain failure"):
            _raise_for_status(resp, "GET", "/q")


class TestSessionHeaders:
    def test_full_session(self):
        config = make_config()
        headers = build_headers(config)
        assert headers["Authorization"] == "Bearer bearer-token-9012"
        assert headers["x-csrf-token"] == "csrf-token-5678"
        assert headers["x-twitter-auth-type"] == "OAuth2Session"
        assert build_cookies(config) == {"auth_token": "auth-token-1234", "ct0": "csrf-token-5678"}

    def test_no_session(self):
        config = XmdifyConfig()
        headers = build_headers(config)
        assert "Authorization" not in headers
        assert "x-csrf-token" not in headers
        assert build_cookies(config) == {}


# ---------------------------------------------------------------------------
# AsyncXTransport.request
# ---------------------------------------------------------------------------

class TestAsyncXTransportRequest:
    """Tests for AsyncXTransport.request()."""

    def _transport(self, **cfg_overrides) -> AsyncXTransport:
        t = AsyncXTransport(make_config(**cfg_overrides))
        t._bucket = _MockAsyncBucket(wait=0.0)
        return t

    # -- Success cases -------------------------------------------------------

    async def test_200_returns_json(self):
        transport = self._transport()
        resp = make_response(200, body={"data": {"ok": True}})
        with patch.object(transport._client, "request", new=AsyncMock(return_value=resp)) as mock:
            result = await transport.request("GET", "/q/TweetResultByRestId", params={"a": "1"})
        assert result == {"data": {"ok": True}}
        mock.assert_awaited_once_with("GET", "/q/TweetResultByRestId", params={"a": "1"})
        await transport.close()

    async def test_204_returns_empty_dict(self):
        transport = self._transport()
        with patch.object(transport._client, "request", new=AsyncMock(return_value=make_response(204))):
            result = await transport.request("GET", "/q")
        assert result == {}
        await transport.close()

    # -- 4xx non-retryable errors -------------------------------------------

    @pytest.mark.parametrize(("status", "error"), [
        (400, XmdifyValidationError),
        (401, XmdifyAuthError),
        (403, XmdifyPermissionError),
        (404, XmdifyNotFoundError),
    ])
    async def test_4xx_raises_immediately(self, status, error):
        transport = self._transport()
        mock = AsyncMock(return_value=make_response(status, body={"errors": [{"message": "no"}]}))
        with patch.object(transport._client, "request", new=mock), pytest.raises(error):
            await transport.request("GET", "/q")
        assert mock.await_count == 1
        await transport.close()

    # -- Retry on 429 / 5xx --------------------------------------------------

    async def test_429_retry_exhausted(self):
        transport = self._transport(retry_max_attempts=3)
        mock = AsyncMock(return_value=make_response(429, body={}))
        with (
            patch.object(transport._client, "request", new=mock),
            pytest.raises(XmdifyRetryExhaustedError) as exc_info,
        ):
            await transport.request("GET", "/q")
        assert exc_info.value.context["attempts"] == 3
        assert exc_info.value.context["last_status_code"] == 429
        assert mock.await_count == 3
        await transport.close()

    async def test_429_with_retry_after_success_on_retry(self):
        transport = self._transport(retry_max_attempts=3)
        responses = [
            make_response(429, body={}, headers={"retry-after": "0"}),
            make_response(200, body={"ok": True}),
        ]
        with patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)):
            result = await transport.request("GET", "/q")
        assert result == {"ok": True}
        await transport.close()

    async def test_429_waits_for_rate_limit_reset(self):
        transport = self._transport(retry_max_attempts=2, retry_max_delay=1.0)
        responses = [
            make_response(429, body={}, headers={
                "x-rate-limit-remaining": "0",
                "x-rate-limit-reset": "1012",
                "retry-after": "3",
            }),
            make_response(200, body={"ok": True}),
        ]
        with (
            patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)),
            patch("xmdify.x_api.retries.time.time", return_value=1000.0),
            patch("xmdify.x_api.transport.asyncio.sleep", new=AsyncMock()) as mock_sleep,
        ):
            result = await transport.request("GET", "/q")
        assert result == {"ok": True}
        mock_sleep.assert_awaited_once_with(12.0)
        await transport.close()

    async def test_429_reset_in_the_past_retries_immediately(self):
        transport = self._transport(retry_max_attempts=2, retry_base_delay=5.0, retry_max_delay=5.0)
        responses = [
            make_response(429, body={}, headers={"x-rate-limit-reset": "990"}),
            make_response(200, body={}),
        ]
        with (
            patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)),
            patch("xmdify.x_api.retries.time.time", return_value=1000.0),
            patch("xmdify.x_api.transport.asyncio.sleep", new=AsyncMock()) as mock_sleep,
        ):
            await transport.request("GET", "/q")
        mock_sleep.assert_awaited_once_with(0.0)
        await transport.close()

    async def test_429_without_headers_backs_off(self):
        transport = self._transport(retry_max_attempts=2, retry_base_delay=2.0, retry_max_delay=10.0)
        responses = [make_response(429, body={}), make_response(200, body={})]
        with (
            patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)),
            patch("xmdify.x_api.transport.asyncio.sleep", new=AsyncMock()) as mock_sleep,
        ):
            await transport.request("GET", "/q")
        mock_sleep.assert_awaited_once_with(2.0)
        await transport.close()

    async def test_exhausted_window_holds_bucket(self):
        transport = self._transport()
        resp = make_response(200, body={"ok": True}, headers={
            "x-rate-limit-remaining": "0",
            "x-rate-limit-reset": "1030",
        })
        with (
            patch.object(transport._client, "request", new=AsyncMock(return_value=resp)),
            patch("xmdify.x_api.retries.time.time", return_value=1000.0),
        ):
            assert await transport.request("GET", "/q") == {"ok": True}
        assert transport._bucket.holds == [30.0]
        await transport.close()

    async def test_remaining_window_does_not_hold_bucket(self):
        transport = self._transport()
        resp = make_response(200, body={}, headers={
            "x-rate-limit-remaining": "49",
            "x-rate-limit-reset": "1030",
        })
        with patch.object(transport._client, "request", new=AsyncMock(return_value=resp)):
            await transport.request("GET", "/q")
        assert transport._bucket.holds == []
        await transport.close()

    async def test_500_success_on_second_attempt(self):
        transport = self._transport(retry_max_attempts=3)
        responses = [make_response(500, body={}), make_response(200, body={"id": "abc"})]
        with patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)):
            result = await transport.request("GET", "/q")
        assert result["id"] == "abc"
        await transport.close()

    # -- Network errors -------------------------------------------------------

    async def test_timeout_retried_then_success(self):
        transport = self._transport(retry_max_attempts=3)
        side_effect = [httpx.TimeoutException("timed out"), make_response(200, body={"id": "t"})]
        with patch.object(transport._client, "request", new=AsyncMock(side_effect=side_effect)):
            result = await transport.request("GET", "/q")
        assert result == {"id": "t"}
        await transport.close()

    async def test_network_error_on_last_attempt_raises_network_error(self):
        transport = self._transport(retry_max_attempts=2)
        mock = AsyncMock(side_effect=httpx.NetworkError("connection reset"))
        with (
            patch.object(transport._client, "request", new=mock),
            pytest.raises(XmdifyNetworkError) as exc_info,
        ):
            await transport.request("GET", "/q")
        assert isinstance(exc_info.value.cause, httpx.NetworkError)
        assert mock.await_count == 2
        await transport.close()

    # -- Metrics --------------------------------------------------------------

    async def test_request_metrics_emitted(self):
        mock_metrics = MagicMock()
        transport = self._transport(metrics=mock_metrics)
        with patch.object(transport._client, "request", new=AsyncMock(return_value=make_response(200, body={}))):
            await transport.request("GET", "/q")
        mock_metrics.increment.assert_any_call(
            "xmdify.requests_total",
            tags={"method": "GET", "path": "/q", "status": "200"},
        )
        await transport.close()

    async def test_rate_limit_timing_metric_emitted(self):
        mock_metrics = MagicMock()
        transport = self._transport(metrics=mock_metrics)
        transport._bucket = _MockAsyncBucket(wait=1.0)
        with patch.object(transport._client, "request", new=AsyncMock(return_value=make_response(200, body={}))):
            await transport.request("GET", "/q")
        mock_metrics.timing.assert_any_call(
            "xmdify.rate_limit_wait_ms",
            pytest.approx(1000.0, rel=0.1),
            tags={"method": "GET", "path": "/q"},
        )
        await transport.close()

    async def test_retry_metric_tagged_with_reason(self):
        mock_metrics = MagicMock()
        transport = self._transport(metrics=mock_metrics, retry_max_attempts=2)
        responses = [make_response(429, body={}), make_response(200, body={})]
        with patch.object(transport._client, "request", new=AsyncMock(side_effect=responses)):
            await transport.request("GET", "/q")
        mock_metrics.increment.assert_any_call(
            "xmdify.retries_total",
            tags={"method": "GET", "path": "/q", "reason": "rate_limited"},
        )
        await transport.close()


class TestAsyncXTransportLifecycle:
    async def test_close_closes_client(self):
        transport = AsyncXTransport(make_config())
        with patch.object(transport._client, "aclose", new=AsyncMock()) as mock_close:
            await transport.close()
        mock_close.assert_awaited_once()

    async def test_context_manager_closes_on_exit(self):
        transport = AsyncXTransport(make_config())
        with patch.object(transport._client, "aclose", new=AsyncMock()) as mock_close:
            async with transport as t:
                assert t is transport
        mock_close.assert_awaited_once()
