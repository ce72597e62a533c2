"""Data models for the xmdify package.

The article payload returned by X is loosely typed; these dataclasses give
it an explicit shape.  Entities form a tagged union (:class:`MediaEntity`,
:class:`LinkEntity`, :class:`TweetEntity`) so every consumer matches on the
concrete class instead of probing optional fields.

All document types are frozen and use tuples for sequences: a document is a
read-only input and no part of the renderer mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Draft.js block type tags used by X articles."""

    HEADER_ONE = "header-one"
    HEADER_TWO = "header-two"
    HEADER_THREE = "header-three"
    HEADER_FOUR = "header-four"
    HEADER_FIVE = "header-five"
    HEADER_SIX = "header-six"
    ORDERED_LIST_ITEM = "ordered-list-item"
    UNORDERED_LIST_ITEM = "unordered-list-item"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code-block"
    ATOMIC = "atomic"
    UNSTYLED = "unstyled"

    @classmethod
    def parse(cls, value: object) -> BlockType:
        """Map a raw type tag to a member; unknown tags become ``UNSTYLED``."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNSTYLED

    @property
    def heading_level(self) -> int:
        """Heading level 1-6, or 0 for non-heading blocks."""
        return _HEADING_LEVELS.get(self, 0)


_HEADING_LEVELS: dict[BlockType, int] = {
    BlockType.HEADER_ONE: 1,
    BlockType.HEADER_TWO: 2,
    BlockType.HEADER_THREE: 3,
    BlockType.HEADER_FOUR: 4,
    BlockType.HEADER_FIVE: 5,
    BlockType.HEADER_SIX: 6,
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MediaItem:
    """Reference from a media entity to a record in ``media_entities``."""

    media_id: str


@dataclass(frozen=True)
class MediaEntity:
    """An embedded image or video (raw types ``MEDIA`` and ``IMAGE``).

    Attributes
    ----------
    media_items:
        Media ids, resolved through the document's ``media_entities``.
    caption:
        Optional caption, used as image alt text.
    fallback_url:
        Direct URL emitted after the resolved media items, if any.
    """

    media_items: tuple[MediaItem, ...] = ()
    caption: str | None = None
    fallback_url: str | None = None


@dataclass(frozen=True)
class LinkEntity:
    """A hyperlink (raw type ``LINK``)."""

    url: str


@dataclass(frozen=True)
class TweetEntity:
    """A quoted tweet embed (raw type ``TWEET``)."""

    tweet_id: str


Entity = Union[MediaEntity, LinkEntity, TweetEntity]


@dataclass(frozen=True)
class EntityMapEntry:
    """One entry of the entity map.

    Attributes
    ----------
    key:
        Declared logical key as found in the payload, stringified when X
        sends a number.  Usually a decimal string; may be missing or
        duplicated.
    value:
        The parsed entity, or ``None`` when its kind is not recognised.
    """

    key: str | None
    value: Entity | None

    @property
    def logical_key(self) -> int | None:
        """The declared key parsed as an integer, or ``None``."""
        return parse_int_prefix(self.key)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntityRange:
    """An offset/length annotation pointing at an entity-map entry.

    Any field is ``None`` when the payload omits it or carries a
    non-integer value.
    """

    key: int | None
    offset: int | None
    length: int | None


@dataclass(frozen=True)
class Block:
    """One paragraph, list item, heading, code line or embed."""

    type: BlockType = BlockType.UNSTYLED
    text: str = ""
    entity_ranges: tuple[EntityRange, ...] = ()


@dataclass(frozen=True)
class ContentState:
    """The ordered blocks and the entity map of one article body.

    ``entity_map`` is a tuple of ``(index, entry)`` pairs in payload order;
    the index is the string-encoded position used by the raw map.
    """

    blocks: tuple[Block, ...] = ()
    entity_map: tuple[tuple[str, EntityMapEntry], ...] = ()

    def entries(self) -> dict[str, EntityMapEntry]:
        """Return the entity map as a plain ``{index: entry}`` dict."""
        return dict(self.entity_map)


# ---------------------------------------------------------------------------
# Media records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VideoVariant:
    """One encoding of a video."""

    url: str | None = None
    bit_rate: int | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class MediaInfo:
    """URLs available for one media record."""

    original_img_url: str | None = None
    preview_img_url: str | None = None
    variants: tuple[VideoVariant, ...] = ()


@dataclass(frozen=True)
class MediaEntityRecord:
    """An entry of the article's ``media_entities`` list."""

    media_id: str | None = None
    media_info: MediaInfo | None = None


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArticleDocument:
    """A parsed X article."""

    title: str | None = None
    cover_media: MediaEntityRecord | None = None
    media_entities: tuple[MediaEntityRecord, ...] = ()
    content_state: ContentState | None = None
    plain_text: str | None = None
    preview_text: str | None = None


# ---------------------------------------------------------------------------
# Referenced tweets and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferencedTweetInfo:
    """What is known about a quoted tweet after lookup.

    A failed lookup yields a record with only ``id`` and the generic
    ``https://x.com/i/web/status/<id>`` URL.
    """

    id: str
    url: str
    author_name: str | None = None
    author_username: str | None = None
    text: str | None = None


@dataclass
class ConversionWarning:
    """A non-fatal issue encountered during conversion.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"SHAPE_MISMATCH"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class ConversionResult:
    """Output of one article conversion.

    Attributes
    ----------
    markdown:
        The rendered Markdown text.
    cover_url:
        Resolved URL of the cover media, if the article has one.
    warnings:
        Non-fatal issues noticed while rendering.
    """

    markdown: str
    cover_url: str | None = None
    warnings: list[ConversionWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_int_prefix(value: object) -> int | None:
    """Parse a leading base-10 integer the way ``parseInt(value, 10)`` does.

    Leading whitespace and an optional sign are accepted, trailing
    garbage is ignored.  Returns ``None`` when no digits are found.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for ch in text:
        if not ("0" <= ch <= "9"):
            break
        digits += ch
    if not digits:
        return None
    return sign * int(digits)
