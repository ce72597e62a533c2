"""Block stream renderer: article blocks to Markdown lines.

Walks the ordered block list once, emitting Markdown lines grouped into
*chunks*.  A blank line separates two chunks unless both are of the same
kind and that kind stacks (list items, quote lines, media lines).

Code blocks are special: consecutive ``code-block`` blocks share one fence,
and any other block closes an open fence before it renders.

All per-conversion state (used URLs, list numbering, fence state) lives in
a :class:`RenderContext` created by the caller for a single conversion.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from xmdify.config import XmdifyConfig
from xmdify.models import (
    Block,
    BlockType,
    LinkEntity,
    MediaEntity,
    ReferencedTweetInfo,
    TweetEntity,
)

from .entities import EntityLookup
from .inline_renderer import render_inline_links
from .media import render_media_entity
from .quotes import render_tweet_quote

CODE_FENCE = "```"


class ChunkKind(str, Enum):
    """Kind of an emitted chunk, driving blank-line separation."""

    LIST = "list"
    QUOTE = "quote"
    HEADING = "heading"
    TEXT = "text"
    CODE = "code"
    MEDIA = "media"


_STACKING_KINDS: frozenset[ChunkKind] = frozenset({
    ChunkKind.LIST,
    ChunkKind.QUOTE,
    ChunkKind.MEDIA,
})


@dataclass
class RenderContext:
    """Mutable state scoped to one conversion.

    Attributes
    ----------
    lookup:
        Index over the article's entity map.
    media_by_id:
        ``media_id`` to resolved URL.
    media_link_map:
        Media-to-link pairing used for inline media ranges.
    referenced_tweets:
        Resolved quoted tweets keyed by tweet id.  Empty when lookup is
        not available.
    used_urls:
        Every media URL emitted so far, cover included.
    """

    lookup: EntityLookup = field(default_factory=EntityLookup)
    media_by_id: dict[str, str] = field(default_factory=dict)
    media_link_map: dict[int, str] = field(default_factory=dict)
    referenced_tweets: Mapping[str, ReferencedTweetInfo] = field(default_factory=dict)
    used_urls: set[str] = field(default_factory=set)

    # Rendering state.
    lines: list[str] = field(default_factory=list)
    previous_kind: ChunkKind | None = None
    list_kind: BlockType | None = None
    ordered_index: int = 0
    in_code_block: bool = False


class BlockStreamRenderer:
    """Render a sequence of article blocks into Markdown lines.

    Parameters
    ----------
    config:
        Controls the quoted-tweet label, the summary length and the media
        placeholder pattern.
    """

    def __init__(self, config: XmdifyConfig | None = None) -> None:
        self._config = config or XmdifyConfig()
        self._placeholder_re = re.compile(self._config.media_placeholder_pattern)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, blocks: Iterable[Block], ctx: RenderContext) -> list[str]:
        """Render *blocks* and return the emitted lines.

        Lines accumulate in ``ctx.lines``; an open code fence is closed at
        the end.
        """
        for block in blocks:
            self.render_block(block, ctx)
        self._close_code_block(ctx)
        return ctx.lines

    def render_block(self, block: Block, ctx: RenderContext) -> None:
        """Render one block, updating *ctx*."""
        if block.type is BlockType.CODE_BLOCK:
            self._render_code_line(block, ctx)
            return

        self._close_code_block(ctx)

        if block.type is BlockType.ATOMIC:
            self._reset_list(ctx)
            self._render_atomic(block, ctx)
            return

        text = render_inline_links(
            block.text, block.entity_ranges, ctx.lookup, ctx.media_link_map,
        )

        if block.type is BlockType.UNORDERED_LIST_ITEM:
            ctx.list_kind = BlockType.UNORDERED_LIST_ITEM
            ctx.ordered_index = 0
            self._push(ctx, [f"- {text}"], ChunkKind.LIST)
        elif block.type is BlockType.ORDERED_LIST_ITEM:
            if ctx.list_kind is not BlockType.ORDERED_LIST_ITEM:
                ctx.ordered_index = 0
            ctx.list_kind = BlockType.ORDERED_LIST_ITEM
            ctx.ordered_index += 1
            self._push(ctx, [f"{ctx.ordered_index}. {text}"], ChunkKind.LIST)
        else:
            self._reset_list(ctx)
            level = block.type.heading_level
            if level:
                self._push(ctx, [f"{'#' * level} {text}"], ChunkKind.HEADING)
            elif block.type is BlockType.BLOCKQUOTE:
                quote_lines = text.split("\n") if text else [""]
                self._push(ctx, [f"> {line}" for line in quote_lines], ChunkKind.QUOTE)
            elif not self._placeholder_re.search(text.strip()):
                self._push(ctx, [text], ChunkKind.TEXT)

        self._push(ctx, self._media_lines(block, ctx), ChunkKind.MEDIA)

    # ------------------------------------------------------------------
    # Internal: chunk emission
    # ------------------------------------------------------------------

    @staticmethod
    def _push(ctx: RenderContext, chunk: list[str], kind: ChunkKind) -> None:
        if not chunk:
            return
        stacks = ctx.previous_kind is kind and kind in _STACKING_KINDS
        if ctx.lines and ctx.previous_kind is not None and not stacks:
            ctx.lines.append("")
        ctx.lines.extend(chunk)
        ctx.previous_kind = kind

    @staticmethod
    def _reset_list(ctx: RenderContext) -> None:
        ctx.list_kind = None
        ctx.ordered_index = 0

    def _render_code_line(self, block: Block, ctx: RenderContext) -> None:
        if not ctx.in_code_block:
            if ctx.lines:
                ctx.lines.append("")
            ctx.lines.append(CODE_FENCE)
            ctx.in_code_block = True
        ctx.lines.append(block.text)
        ctx.previous_kind = ChunkKind.CODE
        self._reset_list(ctx)

    @staticmethod
    def _close_code_block(ctx: RenderContext) -> None:
        if ctx.in_code_block:
            ctx.lines.append(CODE_FENCE)
            ctx.in_code_block = False
            ctx.previous_kind = ChunkKind.CODE

    def _render_atomic(self, block: Block, ctx: RenderContext) -> None:
        self._push(ctx, self._tweet_lines(block, ctx), ChunkKind.QUOTE)
        self._push(ctx, self._media_lines(block, ctx), ChunkKind.MEDIA)
        self._push(ctx, self._link_lines(block, ctx), ChunkKind.TEXT)

    # ------------------------------------------------------------------
    # Internal: attached entity lines
    # ------------------------------------------------------------------

    def _media_lines(self, block: Block, ctx: RenderContext) -> list[str]:
        lines: list[str] = []
        for entity_range in block.entity_ranges:
            entry = ctx.lookup.resolve(entity_range.key)
            if entry is not None and isinstance(entry.value, MediaEntity):
                lines.extend(
                    render_media_entity(entry.value, ctx.media_by_id, ctx.used_urls)
                )
        return lines

    def _tweet_lines(self, block: Block, ctx: RenderContext) -> list[str]:
        lines: list[str] = []
        for entity_range in block.entity_ranges:
            entry = ctx.lookup.resolve(entity_range.key)
            if entry is None or not isinstance(entry.value, TweetEntity):
                continue
            tweet_id = entry.value.tweet_id
            if not tweet_id:
                continue
            lines.extend(render_tweet_quote(
                tweet_id,
                ctx.referenced_tweets.get(tweet_id),
                label=self._config.quote_label,
                max_chars=self._config.summary_max_chars,
            ))
        return lines

    @staticmethod
    def _link_lines(block: Block, ctx: RenderContext) -> list[str]:
        urls: dict[str, None] = {}
        for entity_range in block.entity_ranges:
            entry = ctx.lookup.resolve(entity_range.key)
            if entry is not None and isinstance(entry.value, LinkEntity) and entry.value.url:
                urls.setdefault(entry.value.url)
        return list(urls)
