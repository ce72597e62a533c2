"""Async HTTP transport for the X GraphQL API.

The transport handles the full request lifecycle:

1. Acquire a token-bucket slot (wait if needed).
2. Send the HTTP request with the session headers and cookies.
3. On ``2xx`` -- return the parsed JSON response.
4. On ``429`` -- wait for ``x-rate-limit-reset`` (or ``Retry-After``, or
   back off) and retry.  A ``2xx`` reporting an exhausted window holds the
   token bucket until the reset.
5. On ``5xx`` / network error -- exponential backoff and retry.
6. On non-retryable ``4xx`` -- raise the appropriate typed error immediately.
7. On max attempts exceeded -- raise :class:`XmdifyRetryExhaustedError`.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from xmdify.config import XmdifyConfig
from xmdify.errors import (
    XmdifyAuthError,
    XmdifyNetworkError,
    XmdifyNotFoundError,
    XmdifyPermissionError,
    XmdifyRetryExhaustedError,
    XmdifyValidationError,
)
from xmdify.observability import NoopMetricsHook, get_logger

from .rate_limit import AsyncTokenBucket
from .retries import (
    RETRYABLE_STATUSES,
    compute_backoff,
    rate_limit_delay,
    should_retry,
    window_exhausted,
)

log = get_logger("xmdify.transport")

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_message(response: httpx.Response) -> tuple[str, Any]:
    """Return the first API error message and the decoded body."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    message = response.text[:500]
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            message = str(errors[0].get("message", message))
        elif "message" in body:
            message = str(body["message"])
    return message, body


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the :class:`XmdifyError` subclass matching a non-retryable 4xx."""
    status = response.status_code
    message, body = _error_message(response)

    if status == 401:
        raise XmdifyAuthError(
            message=f"Authentication failed on {method} {path}: {message}",
            context={"status_code": status},
        )
    if status == 403:
        raise XmdifyPermissionError(
            message=f"Permission denied on {method} {path}: {message}",
            context={"status_code": status, "operation": f"{method} {path}"},
        )
    if status == 404:
        raise XmdifyNotFoundError(
            message=f"Resource not found on {method} {path}: {message}",
            context={"status_code": status, "path": path},
        )
    raise XmdifyValidationError(
        message=f"Client error {status} on {method} {path}: {message}",
        context={"status_code": status, "body": body},
    )


def build_headers(config: XmdifyConfig) -> dict[str, str]:
    """Session headers for the X web API."""
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "x-twitter-active-user": "yes",
        "x-twitter-client-language": "en",
    }
    if config.bearer_token:
        headers["Authorization"] = f"Bearer {config.bearer_token}"
    if config.has_session:
        headers["x-csrf-token"] = config.csrf_token
        headers["x-twitter-auth-type"] = "OAuth2Session"
    return headers


def build_cookies(config: XmdifyConfig) -> dict[str, str]:
    """Session cookies (``auth_token`` and ``ct0``) when configured."""
    cookies: dict[str, str] = {}
    if config.auth_token:
        cookies["auth_token"] = config.auth_token
    if config.csrf_token:
        cookies["ct0"] = config.csrf_token
    return cookies


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncXTransport:
    """Async HTTP transport with session auth, retry, and rate limiting.

    Parameters
    ----------
    config:
        A :class:`XmdifyConfig` instance controlling all transport behaviour.
    """

    def __init__(self, config: XmdifyConfig) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps, burst=1)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=build_headers(config),
            cookies=build_cookies(config),
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the X API.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to ``base_url``.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request`.

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        XmdifyAuthError
            On 401 responses.
        XmdifyPermissionError
            On 403 responses.
        XmdifyNotFoundError
            On 404 responses.
        XmdifyValidationError
            On other non-retryable 4xx responses.
        XmdifyRetryExhaustedError
            When all retry attempts have been exhausted.
        XmdifyNetworkError
            On transport-level failures that may not be retried.
        """
        max_attempts = self._config.retry_max_attempts
        last_exception: Exception | None = None
        last_status: int | None = None

        for attempt in range(max_attempts):
            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing(
                    "xmdify.rate_limit_wait_ms",
                    wait * 1000,
                    tags={"method": method, "path": path},
                )

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
                elapsed_ms = (time.monotonic() - t0) * 1000
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exception = exc
                last_status = None
                delay = self._handle_network_exception(method, path, exc, attempt)
                await asyncio.sleep(delay)
                continue

            last_status = response.status_code
            last_exception = None
            tags = {"method": method, "path": path, "status": str(response.status_code)}
            self._metrics.increment("xmdify.requests_total", tags=tags)
            self._metrics.timing("xmdify.request_duration_ms", elapsed_ms, tags=tags)

            if 200 <= response.status_code < 300:
                if window_exhausted(response.headers):
                    self._hold_until_reset(response, method, path)
                if response.status_code == 204 or not response.content:
                    return {}
                result: dict = response.json()
                return result

            if response.status_code not in RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after: float | None = None
            reason = "server_error"
            if response.status_code == 429:
                retry_after = rate_limit_delay(response.headers)
                reason = "rate_limited"
                self._metrics.increment(
                    "xmdify.rate_limited_total",
                    tags={"method": method, "path": path},
                )
                log.warning(
                    "Rate limited by X API",
                    extra={
                        "extra_fields": {
                            "op": "request",
                            "method": method,
                            "path": path,
                            "status_code": 429,
                            "retry_after": retry_after,
                            "attempt": attempt + 1,
                        }
                    },
                )

            delay = compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
                retry_after=retry_after,
            )
            self._metrics.increment(
                "xmdify.retries_total",
                tags={"method": method, "path": path, "reason": reason},
            )
            await asyncio.sleep(delay)

        ctx: dict[str, Any] = {
            "attempts": max_attempts,
            "last_status_code": last_status,
        }
        if last_exception is not None:
            raise XmdifyRetryExhaustedError(
                message=(
                    f"All {max_attempts} attempts exhausted for {method} {path} "
                    f"(last error: {last_exception})"
                ),
                context=ctx,
                cause=last_exception,
            )
        raise XmdifyRetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context=ctx,
        )

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncXTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    def _hold_until_reset(self, response: httpx.Response, method: str, path: str) -> None:
        delay = rate_limit_delay(response.headers)
        if not delay:
            return
        self._bucket.hold(delay)
        log.info(
            "X API rate-limit window exhausted",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "hold_seconds": round(delay, 3),
                }
            },
        )

    def _handle_network_exception(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
    ) -> float:
        """Return the backoff delay for a retryable network error.

        Raises :class:`XmdifyNetworkError` if no attempts remain.
        """
        max_attempts = self._config.retry_max_attempts
        self._metrics.increment(
            "xmdify.requests_total",
            tags={"method": method, "path": path, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        if should_retry(None, exc, attempt, max_attempts):
            self._metrics.increment(
                "xmdify.retries_total",
                tags={"method": method, "path": path, "reason": "network_error"},
            )
            return compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
            )
        raise XmdifyNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc
