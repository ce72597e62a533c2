"""Asynchronous xmdify client.

:class:`AsyncXmdifyClient` wires the X API tweet lookup, the referenced
tweet resolver and the article renderer together.

Usage::

    import asyncio
    from xmdify import AsyncXmdifyClient

    async def main(article: dict):
        async with AsyncXmdifyClient(auth_token="...", csrf_token="...",
                                     bearer_token="...") as client:
            markdown = await client.article_to_markdown(
                article, article_id="1234567890",
            )
            print(markdown)

    asyncio.run(main(article))
"""

from __future__ import annotations

from typing import Any

from xmdify.config import XmdifyConfig
from xmdify.converter.article_to_md import ArticleToMarkdownRenderer, format_front_matter
from xmdify.converter.document import coerce_article
from xmdify.models import ConversionResult, ReferencedTweetInfo
from xmdify.observability import NoopMetricsHook, get_logger
from xmdify.references import TweetLookup, resolve_referenced_tweets
from xmdify.x_api.transport import AsyncXTransport
from xmdify.x_api.tweets import AsyncTweetAPI

log = get_logger("xmdify.client")


def article_url(article_id: str) -> str:
    """Canonical URL of an X article."""
    return f"https://x.com/i/article/{article_id}"


class AsyncXmdifyClient:
    """Asynchronous article-to-Markdown client.

    Parameters
    ----------
    lookup:
        Optional tweet lookup replacing the built-in X API lookup.
    **kwargs:
        Forwarded to :class:`XmdifyConfig`.
    """

    def __init__(self, lookup: TweetLookup | None = None, **kwargs: Any) -> None:
        self._config = XmdifyConfig(**kwargs)
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._transport = AsyncXTransport(self._config)
        self._tweets: TweetLookup = lookup or AsyncTweetAPI(self._transport, self._config)
        self._renderer = ArticleToMarkdownRenderer(self._config)
        self._lookup_enabled = lookup is not None or self._config.has_session

    @property
    def config(self) -> XmdifyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    async def resolve_referenced_tweets(self, article: object) -> dict[str, ReferencedTweetInfo]:
        """Look up every tweet quoted in *article*, one at a time."""
        return await resolve_referenced_tweets(article, self._tweets, self._metrics)

    async def render_article(
        self,
        article: object,
        resolve_references: bool = True,
    ) -> ConversionResult:
        """Render *article* to Markdown, resolving quoted tweets first.

        Quoted tweets are looked up only when *resolve_references* is set
        and a lookup is available (a custom one, or session cookies for the
        X API).  Otherwise they render with their generic URL.
        """
        referenced: dict[str, ReferencedTweetInfo] = {}
        if resolve_references and self._lookup_enabled:
            referenced = await self.resolve_referenced_tweets(article)
        elif resolve_references:
            log.info(
                "Skipping referenced tweet lookup: no session configured",
                extra={"extra_fields": {"op": "render_article"}},
            )

        result = self._renderer.render(article, referenced_tweets=referenced)
        if result.warnings:
            self._metrics.increment(
                "xmdify.conversion_warnings_total", value=len(result.warnings),
            )
        return result

    async def article_to_markdown(
        self,
        article: object,
        article_id: str,
        requested_url: str | None = None,
        resolve_references: bool = True,
    ) -> str:
        """Render *article* as a Markdown document with front matter.

        The front matter records the article URL, the URL the caller asked
        for, the title and the cover image.
        """
        result = await self.render_article(article, resolve_references)
        document = coerce_article(article)
        title = (document.title or "").strip() if document is not None else ""

        meta = format_front_matter({
            "url": article_url(article_id),
            "requestedUrl": requested_url,
            "title": title or None,
            "coverImage": result.cover_url,
        })
        parts = [meta, result.markdown.rstrip()]
        return "\n\n".join(part for part in parts if part).rstrip()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncXmdifyClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
