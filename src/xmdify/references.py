"""Resolution of tweets quoted inside an article.

Articles embed other tweets as ``TWEET`` entities carrying only an id.
:func:`resolve_referenced_tweets` looks each id up, one at a time, and turns
the raw tweet objects into :class:`~xmdify.models.ReferencedTweetInfo`
records for the renderer.

Lookups run strictly in sequence to stay clear of upstream rate limits.  A
failed lookup never aborts the conversion: the failure is logged and the id
gets a degraded record holding only its generic URL.  Cancellation is
honoured between lookups and propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from xmdify.converter.document import coerce_article
from xmdify.converter.quotes import build_tweet_url
from xmdify.models import ReferencedTweetInfo, TweetEntity
from xmdify.observability import NoopMetricsHook, get_logger

log = get_logger("xmdify.references")


@runtime_checkable
class TweetLookup(Protocol):
    """Anything able to fetch a raw tweet object by id."""

    async def fetch_tweet(self, tweet_id: str) -> dict:
        """Return the raw tweet object or raise on failure."""
        ...


def extract_referenced_tweet_ids(article: object) -> list[str]:
    """Ids of every quoted tweet in *article*, deduplicated, in map order."""
    document = coerce_article(article)
    if document is None or document.content_state is None:
        return []

    ids: list[str] = []
    seen: set[str] = set()
    for _, entry in document.content_state.entity_map:
        if not isinstance(entry.value, TweetEntity):
            continue
        tweet_id = entry.value.tweet_id
        if not tweet_id or tweet_id in seen:
            continue
        seen.add(tweet_id)
        ids.append(tweet_id)
    return ids


def extract_referenced_tweet_info(tweet: Any, fallback_id: str) -> ReferencedTweetInfo:
    """Build a :class:`ReferencedTweetInfo` from a raw GraphQL tweet object.

    Author fields come from ``core.user_results.result.core`` with
    ``.legacy`` as fallback.  The text prefers the long-form note text over
    ``legacy.full_text`` and ``legacy.text``.
    """
    user = _dig(tweet, "core", "user_results", "result")
    user_core = _dig(user, "core")
    user_legacy = _dig(user, "legacy")

    author_name = _first_str(_dig(user_core, "name"), _dig(user_legacy, "name"))
    author_username = _first_str(
        _dig(user_core, "screen_name"), _dig(user_legacy, "screen_name"),
    )

    text = _first_present(
        _dig(tweet, "note_tweet", "note_tweet_results", "result", "text"),
        _dig(tweet, "legacy", "full_text"),
        _dig(tweet, "legacy", "text"),
    )

    rest_id = _dig(tweet, "rest_id")
    tweet_id = rest_id if isinstance(rest_id, str) and rest_id else fallback_id

    return ReferencedTweetInfo(
        id=tweet_id,
        url=build_tweet_url(tweet_id, author_username),
        author_name=author_name,
        author_username=author_username,
        text=text if isinstance(text, str) else None,
    )


async def resolve_referenced_tweets(
    article: object,
    lookup: TweetLookup,
    metrics: Any | None = None,
) -> dict[str, ReferencedTweetInfo]:
    """Look up every tweet quoted in *article*.

    Parameters
    ----------
    article:
        Raw article payload or an :class:`ArticleDocument`.
    lookup:
        The tweet lookup, e.g. :class:`~xmdify.x_api.tweets.AsyncTweetAPI`.
    metrics:
        Optional metrics hook.

    Returns
    -------
    dict[str, ReferencedTweetInfo]
        One record per quoted tweet id, in first-appearance order.
    """
    metrics = metrics if metrics is not None else NoopMetricsHook()
    resolved: dict[str, ReferencedTweetInfo] = {}

    for tweet_id in extract_referenced_tweet_ids(article):
        try:
            tweet = await lookup.fetch_tweet(tweet_id)
            info = extract_referenced_tweet_info(tweet, tweet_id)
        except Exception as exc:
            log.warning(
                "Failed to fetch referenced tweet",
                extra={
                    "extra_fields": {
                        "op": "resolve_referenced_tweets",
                        "tweet_id": tweet_id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    }
                },
            )
            metrics.increment(
                "xmdify.referenced_tweets_total", tags={"status": "failed"},
            )
            info = ReferencedTweetInfo(id=tweet_id, url=build_tweet_url(tweet_id))
        else:
            metrics.increment(
                "xmdify.referenced_tweets_total", tags={"status": "ok"},
            )
        resolved[tweet_id] = info

    return resolved


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dig(value: Any, *path: str) -> Any:
    for name in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(name)
    return value


def _first_str(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str):
            return value
    return None


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None
