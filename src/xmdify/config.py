"""Configuration for xmdify.

:class:`XmdifyConfig` is a dataclass that captures every tuneable knob of the
package: the rendering conventions of the Markdown output and the transport
settings used when quoted tweets are looked up against the X API.

Two module-level constants hold the lookup defaults:

* :data:`DEFAULT_TWEET_QUERY_ID` -- GraphQL operation id for
  ``TweetResultByRestId``.
* :data:`DEFAULT_TWEET_FEATURES` -- feature switches sent with the query.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Lookup defaults
# ---------------------------------------------------------------------------

DEFAULT_TWEET_QUERY_ID = "0hWvDhmW8YQ-S_ib3azIrw"
"""GraphQL operation id for the ``TweetResultByRestId`` query."""

DEFAULT_TWEET_FEATURES: dict[str, bool] = {
    "creator_subscriptions_tweet_preview_api_enabled": True,
    "longform_notetweets_consumption_enabled": True,
    "longform_notetweets_rich_text_read_enabled": True,
    "responsive_web_graphql_exclude_directive_enabled": True,
    "responsive_web_graphql_timeline_navigation_enabled": True,
    "tweet_awards_web_tipping_enabled": False,
    "verified_phone_label_enabled": False,
}
"""Feature switches the GraphQL endpoint requires alongside the variables."""

_SECRET_FIELDS = frozenset({"auth_token", "csrf_token", "bearer_token"})


def _mask(value: str) -> str:
    return f"...{value[-4:]}" if len(value) >= 4 else "****"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class XmdifyConfig:
    """Complete configuration for an xmdify client or renderer.

    Every parameter has a default; rendering needs no configuration at
    all.  Looking up quoted tweets additionally needs the session values
    ``auth_token`` and ``csrf_token`` plus a ``bearer_token``.

    Parameters
    ----------
    auth_token:
        Value of the ``auth_token`` session cookie.  Never logged.
    csrf_token:
        Value of the ``ct0`` cookie, echoed in the ``x-csrf-token`` header.
    bearer_token:
        Web client bearer token sent in the ``Authorization`` header.
    base_url:
        GraphQL API root.  Override for proxy or testing environments.
    tweet_query_id:
        Operation id of the ``TweetResultByRestId`` query.
    tweet_features:
        Feature switches serialised into the ``features`` query parameter.
    quote_label:
        Label of the first line of a quoted-tweet blockquote.
    media_heading:
        Heading text of the trailing gallery of unused media.
    media_placeholder_pattern:
        Regular expression matched against a block's stripped text; a match
        means the block is a media placeholder and only its media is emitted.
    summary_max_chars:
        Maximum length of a quoted tweet's summarized text, ellipsis
        included.
    retry_max_attempts:
        Maximum number of attempts per request for retryable HTTP errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Add random jitter to backoff intervals.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~xmdify.observability.MetricsHook` backend.
    """

    # ── Session ─────────────────────────────────────────────────────────
    auth_token: str = ""

    csrf_token: str = ""

    bearer_token: str = ""

    # ── Lookup ──────────────────────────────────────────────────────────
    base_url: str = "https://x.com/i/api/graphql"

    tweet_query_id: str = DEFAULT_TWEET_QUERY_ID

    tweet_features: dict[str, bool] = field(
        default_factory=lambda: dict(DEFAULT_TWEET_FEATURES),
    )

    # ── Rendering ───────────────────────────────────────────────────────
    quote_label: str = "引用推文"

    media_heading: str = "Media"

    media_placeholder_pattern: str = r"^XIMGPH_\d+$"

    summary_max_chars: int = 280

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter: bool = True

    rate_limit_rps: float = 1.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect the session cookies, or target localhost for testing."
            )

        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.summary_max_chars < 4:
            raise ValueError(f"summary_max_chars must be >= 4, got {self.summary_max_chars}")
        try:
            re.compile(self.media_placeholder_pattern)
        except re.error as exc:
            raise ValueError(
                f"media_placeholder_pattern is not a valid regular expression: {exc}"
            ) from exc

    @property
    def has_session(self) -> bool:
        """``True`` when both session cookies are configured."""
        return bool(self.auth_token and self.csrf_token)

    def __repr__(self) -> str:
        """Mask session secrets to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name in _SECRET_FIELDS:
                parts.append(f"{f.name}='{_mask(val)}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"XmdifyConfig({', '.join(parts)})"
