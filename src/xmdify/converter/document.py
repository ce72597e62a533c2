"""Parse raw X article payloads into :class:`~xmdify.models.ArticleDocument`.

The payload comes straight from the GraphQL API as nested dicts.  Parsing
is tolerant: fields of the wrong type are treated as absent, unknown block
types degrade to ``unstyled`` and unknown entity kinds are kept as entries
with no value, so that index-based lookups still line up.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from xmdify.models import (
    ArticleDocument,
    Block,
    BlockType,
    ContentState,
    Entity,
    EntityMapEntry,
    EntityRange,
    LinkEntity,
    MediaEntity,
    MediaEntityRecord,
    MediaInfo,
    MediaItem,
    TweetEntity,
    VideoVariant,
)

_MEDIA_ENTITY_TYPES: frozenset[str] = frozenset({"MEDIA", "IMAGE"})


def is_article_payload(raw: object) -> bool:
    """Return ``True`` if *raw* looks like an article payload at all.

    An article is an object carrying a string ``title``, ``plain_text`` or
    ``preview_text``, or a non-empty ``content_state``.
    """
    if not isinstance(raw, Mapping):
        return False
    if any(isinstance(raw.get(name), str) for name in ("title", "plain_text", "preview_text")):
        return True
    content_state = raw.get("content_state")
    return isinstance(content_state, (Mapping, list)) or bool(content_state)


def coerce_article(raw: object) -> ArticleDocument | None:
    """Parse *raw* into an :class:`ArticleDocument`.

    Returns ``None`` when :func:`is_article_payload` rejects the input.
    """
    if isinstance(raw, ArticleDocument):
        return raw
    if not isinstance(raw, Mapping) or not is_article_payload(raw):
        return None

    media_entities = tuple(
        _parse_media_record(item) for item in _as_list(raw.get("media_entities"))
    )
    cover = raw.get("cover_media")

    return ArticleDocument(
        title=_as_str(raw.get("title")),
        cover_media=_parse_media_record(cover) if isinstance(cover, Mapping) else None,
        media_entities=media_entities,
        content_state=parse_content_state(raw.get("content_state")),
        plain_text=_as_str(raw.get("plain_text")),
        preview_text=_as_str(raw.get("preview_text")),
    )


def parse_content_state(raw: object) -> ContentState | None:
    """Parse the ``content_state`` object (``blocks`` + ``entityMap``)."""
    if not isinstance(raw, Mapping):
        return None
    blocks = tuple(_parse_block(item) for item in _as_list(raw.get("blocks")))
    return ContentState(blocks=blocks, entity_map=parse_entity_map(raw.get("entityMap")))


def parse_entity_map(raw: object) -> tuple[tuple[str, EntityMapEntry], ...]:
    """Parse the entity map.

    Both the object form (``{"0": {...}}``) and the array form
    (``[{...}, ...]``) are accepted; array entries are indexed by position.
    """
    if isinstance(raw, Mapping):
        items = [(str(idx), entry) for idx, entry in raw.items()]
    elif isinstance(raw, list):
        items = [(str(idx), entry) for idx, entry in enumerate(raw)]
    else:
        return ()

    parsed: list[tuple[str, EntityMapEntry]] = []
    for idx, entry in items:
        if not isinstance(entry, Mapping):
            parsed.append((idx, EntityMapEntry(key=None, value=None)))
            continue
        key = entry.get("key")
        parsed.append((
            idx,
            EntityMapEntry(
                key=None if key is None else str(key),
                value=parse_entity(entry.get("value")),
            ),
        ))
    return tuple(parsed)


def parse_entity(raw: object) -> Entity | None:
    """Parse one entity value into its tagged-union variant."""
    if not isinstance(raw, Mapping):
        return None
    entity_type = raw.get("type")
    data = raw.get("data")
    if not isinstance(data, Mapping):
        data = {}

    if entity_type in _MEDIA_ENTITY_TYPES:
        items: list[MediaItem] = []
        for item in _as_list(data.get("mediaItems")):
            if not isinstance(item, Mapping):
                continue
            media_id = _as_str(item.get("mediaId")) or _as_str(item.get("media_id"))
            if media_id is not None:
                items.append(MediaItem(media_id=media_id))
        return MediaEntity(
            media_items=tuple(items),
            caption=_as_str(data.get("caption")),
            fallback_url=_as_str(data.get("url")),
        )

    if entity_type == "LINK":
        url = data.get("url")
        return LinkEntity(url=url) if isinstance(url, str) else None

    if entity_type == "TWEET":
        return TweetEntity(tweet_id=_as_str(data.get("tweetId")) or "")

    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_block(raw: object) -> Block:
    if not isinstance(raw, Mapping):
        return Block()
    ranges: list[EntityRange] = []
    for item in _as_list(raw.get("entityRanges")):
        if not isinstance(item, Mapping):
            continue
        ranges.append(EntityRange(
            key=_as_int(item.get("key")),
            offset=_as_int(item.get("offset")),
            length=_as_int(item.get("length")),
        ))
    return Block(
        type=BlockType.parse(raw.get("type")),
        text=_as_str(raw.get("text")) or "",
        entity_ranges=tuple(ranges),
    )


def _parse_media_record(raw: object) -> MediaEntityRecord:
    if not isinstance(raw, Mapping):
        return MediaEntityRecord()
    info = raw.get("media_info")
    return MediaEntityRecord(
        media_id=_as_str(raw.get("media_id")),
        media_info=_parse_media_info(info) if isinstance(info, Mapping) else None,
    )


def _parse_media_info(raw: Mapping[str, Any]) -> MediaInfo:
    preview = raw.get("preview_image")
    variants = tuple(
        VideoVariant(
            url=_as_str(item.get("url")),
            bit_rate=_as_int(item.get("bit_rate")),
            content_type=_as_str(item.get("content_type")),
        )
        for item in _as_list(raw.get("variants"))
        if isinstance(item, Mapping)
    )
    return MediaInfo(
        original_img_url=_as_str(raw.get("original_img_url")),
        preview_img_url=(
            _as_str(preview.get("original_img_url"))
            if isinstance(preview, Mapping)
            else None
        ),
        variants=variants,
    )


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None
