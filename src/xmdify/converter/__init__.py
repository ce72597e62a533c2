"""X article to Markdown conversion pipeline.

Public API:

- :class:`ArticleToMarkdownRenderer` -- article payload -> Markdown.
- :func:`format_article_markdown` -- one-shot functional wrapper.
- :func:`format_front_matter` -- ``---`` metadata block.
- :class:`BlockStreamRenderer` / :class:`RenderContext` -- block walker.
- :class:`EntityLookup` / :func:`build_media_link_map` -- entity indexing.
- :func:`render_inline_links` -- entity ranges to Markdown links.
- :func:`resolve_media_url` -- best URL of a media record.
- :func:`coerce_article` -- raw payload -> :class:`~xmdify.models.ArticleDocument`.
"""

from xmdify.converter.article_to_md import (
    ArticleToMarkdownRenderer,
    format_article_markdown,
    format_front_matter,
)
from xmdify.converter.block_renderer import BlockStreamRenderer, RenderContext
from xmdify.converter.document import coerce_article, is_article_payload
from xmdify.converter.entities import EntityLookup, build_media_link_map
from xmdify.converter.inline_renderer import render_inline_links
from xmdify.converter.media import resolve_media_url
from xmdify.converter.quotes import build_tweet_url, summarize_tweet_text

__all__ = [
    "ArticleToMarkdownRenderer",
    "BlockStreamRenderer",
    "EntityLookup",
    "RenderContext",
    "build_media_link_map",
    "build_tweet_url",
    "coerce_article",
    "format_article_markdown",
    "format_front_matter",
    "is_article_payload",
    "render_inline_links",
    "resolve_media_url",
    "summarize_tweet_text",
]
