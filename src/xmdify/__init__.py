"""xmdify -- X (Twitter) article to Markdown converter.

Public re-exports
-----------------

* **Client:** :class:`AsyncXmdifyClient`
* **Rendering:** :class:`ArticleToMarkdownRenderer`, :func:`format_article_markdown`
* **Referenced tweets:** :func:`resolve_referenced_tweets`, :class:`TweetLookup`
* **Configuration:** :class:`XmdifyConfig`
* **Errors:** Every :class:`XmdifyError` subclass and :class:`ErrorCode`
* **Models:** Document, entity and result dataclasses

Usage::

    from xmdify import format_article_markdown

    result = format_article_markdown(article_payload)
    print(result.markdown)
"""

from __future__ import annotations

# ── Client ─────────────────────────────────────────────────────────────
from xmdify.async_client import AsyncXmdifyClient

# ── Configuration ───────────────────────────────────────────────────────
from xmdify.config import XmdifyConfig

# ── Rendering ───────────────────────────────────────────────────────────
from xmdify.converter import (
    ArticleToMarkdownRenderer,
    format_article_markdown,
    format_front_matter,
)

# ── Errors ──────────────────────────────────────────────────────────────
from xmdify.errors import (
    ErrorCode,
    XmdifyAuthError,
    XmdifyError,
    XmdifyLookupError,
    XmdifyNetworkError,
    XmdifyNotFoundError,
    XmdifyPermissionError,
    XmdifyRetryExhaustedError,
    XmdifyValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from xmdify.models import (
    ArticleDocument,
    Block,
    BlockType,
    ContentState,
    ConversionResult,
    ConversionWarning,
    EntityMapEntry,
    EntityRange,
    LinkEntity,
    MediaEntity,
    MediaEntityRecord,
    MediaInfo,
    MediaItem,
    ReferencedTweetInfo,
    TweetEntity,
    VideoVariant,
)

# ── Referenced tweets ───────────────────────────────────────────────────
from xmdify.references import TweetLookup, resolve_referenced_tweets

__all__ = [
    # Client
    "AsyncXmdifyClient",
    # Configuration
    "XmdifyConfig",
    # Rendering
    "ArticleToMarkdownRenderer",
    "format_article_markdown",
    "format_front_matter",
    # Referenced tweets
    "TweetLookup",
    "resolve_referenced_tweets",
    # Errors
    "ErrorCode",
    "XmdifyError",
    "XmdifyAuthError",
    "XmdifyLookupError",
    "XmdifyNetworkError",
    "XmdifyNotFoundError",
    "XmdifyPermissionError",
    "XmdifyRetryExhaustedError",
    "XmdifyValidationError",
    # Models
    "ArticleDocument",
    "Block",
    "BlockType",
    "ContentState",
    "ConversionResult",
    "ConversionWarning",
    "EntityMapEntry",
    "EntityRange",
    "LinkEntity",
    "MediaEntity",
    "MediaEntityRecord",
    "MediaInfo",
    "MediaItem",
    "ReferencedTweetInfo",
    "TweetEntity",
    "VideoVariant",
]
