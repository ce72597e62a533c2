"""X article to Markdown renderer.

Converts an X article payload (a dict as returned by the API, or an already
parsed :class:`~xmdify.models.ArticleDocument`) into Markdown:

1. ``# title`` when the article has a non-empty title.
2. The cover image URL is resolved and marked used so it never appears in
   the body or the gallery; it is returned separately.
3. The content blocks, rendered by :class:`BlockStreamRenderer`.  Articles
   without blocks fall back to ``plain_text`` then ``preview_text``.
4. A ``## Media`` gallery with every media URL not emitted yet.

Payloads that do not look like an article are dumped as a fenced JSON block
instead of failing.

Usage::

    from xmdify.converter.article_to_md import ArticleToMarkdownRenderer

    renderer = ArticleToMarkdownRenderer()
    result = renderer.render(article, referenced_tweets=tweets)
    print(result.markdown)
"""

from __future__ import annotations

import json
from collections.abc import Mapping

from xmdify.config import XmdifyConfig
from xmdify.models import (
    ArticleDocument,
    ConversionResult,
    ConversionWarning,
    ReferencedTweetInfo,
)

from .block_renderer import BlockStreamRenderer, RenderContext
from .document import coerce_article
from .entities import EntityLookup, build_media_link_map
from .media import build_media_by_id, resolve_media_url


class ArticleToMarkdownRenderer:
    """Top-level assembler for article conversion.

    The renderer keeps no state between calls apart from :attr:`warnings`,
    which holds the warnings of the most recent :meth:`render` call.

    Parameters
    ----------
    config:
        Rendering options; defaults are used when omitted.
    """

    def __init__(self, config: XmdifyConfig | None = None) -> None:
        self._config = config or XmdifyConfig()
        self._blocks = BlockStreamRenderer(self._config)
        self.warnings: list[ConversionWarning] = []

    def render(
        self,
        article: object,
        referenced_tweets: Mapping[str, ReferencedTweetInfo] | None = None,
    ) -> ConversionResult:
        """Render *article* to Markdown.

        Parameters
        ----------
        article:
            Raw article payload or an :class:`ArticleDocument`.
        referenced_tweets:
            Quoted tweets resolved ahead of time, keyed by tweet id.  Tweets
            missing from the mapping render with their generic URL only.

        Returns
        -------
        ConversionResult
            The Markdown text and the cover image URL.
        """
        self.warnings = []
        document = coerce_article(article)
        if document is None:
            self.warnings.append(ConversionWarning(
                code="SHAPE_MISMATCH",
                message="Input is not an article payload; emitted as JSON",
                context={"input_type": type(article).__name__},
            ))
            return ConversionResult(
                markdown=_json_fallback(article),
                cover_url=None,
                warnings=list(self.warnings),
            )

        lines: list[str] = []
        title = (document.title or "").strip()
        if title:
            lines.append(f"# {title}")

        cover_url = resolve_media_url(
            document.cover_media.media_info if document.cover_media else None
        )

        ctx = self._new_context(document, referenced_tweets)
        if cover_url:
            ctx.used_urls.add(cover_url)

        body = self._render_body(document, ctx)
        if body:
            if lines:
                lines.append("")
            lines.extend(body)

        gallery = _collect_unused_media(document, ctx.used_urls)
        if gallery:
            # No separator when the gallery is the whole output; a leading
            # blank line would survive the final join.
            if lines:
                lines.append("")
            lines.extend([f"## {self._config.media_heading}", ""])
            lines.extend(f"![]({url})" for url in gallery)

        return ConversionResult(
            markdown="\n".join(lines).rstrip(),
            cover_url=cover_url,
            warnings=list(self.warnings),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _new_context(
        document: ArticleDocument,
        referenced_tweets: Mapping[str, ReferencedTweetInfo] | None,
    ) -> RenderContext:
        entity_map = document.content_state.entries() if document.content_state else {}
        return RenderContext(
            lookup=EntityLookup.build(entity_map),
            media_by_id=build_media_by_id(document),
            media_link_map=build_media_link_map(entity_map),
            referenced_tweets=referenced_tweets or {},
        )

    def _render_body(self, document: ArticleDocument, ctx: RenderContext) -> list[str]:
        blocks = document.content_state.blocks if document.content_state else ()
        if blocks:
            return self._blocks.render(blocks, ctx)
        if document.plain_text is not None:
            return [document.plain_text.strip()]
        if document.preview_text is not None:
            return [document.preview_text.strip()]
        return []


def format_article_markdown(
    article: object,
    referenced_tweets: Mapping[str, ReferencedTweetInfo] | None = None,
    config: XmdifyConfig | None = None,
) -> ConversionResult:
    """Render *article* with a fresh :class:`ArticleToMarkdownRenderer`."""
    return ArticleToMarkdownRenderer(config).render(article, referenced_tweets)


def format_front_matter(meta: Mapping[str, object]) -> str:
    """Render *meta* as a ``---`` delimited front matter block.

    ``None`` and empty-string values are skipped.  Numbers are written
    bare; everything else is JSON-quoted.
    """
    lines = ["---"]
    for key, value in meta.items():
        if value is None or value == "":
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            lines.append(f"{key}: {value}")
        else:
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
    lines.append("---")
    return "\n".join(lines)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _json_fallback(article: object) -> str:
    dumped = json.dumps(article, indent=2, ensure_ascii=False, default=str)
    return f"```json\n{dumped}\n```"


def _collect_unused_media(document: ArticleDocument, used_urls: set[str]) -> list[str]:
    """Media URLs not emitted yet, in ``media_entities`` order.

    Every returned URL is added to *used_urls*.
    """
    urls: list[str] = []
    for record in document.media_entities:
        url = resolve_media_url(record.media_info)
        if not url or url in used_urls:
            continue
        used_urls.add(url)
        urls.append(url)
    return urls
