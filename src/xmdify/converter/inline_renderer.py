"""Inline rendering: entity ranges to Markdown links.

Block text in an X article is plain text; links are expressed as
``{key, offset, length}`` ranges pointing into the entity map.  This module
splices those ranges back into the text as ``[text](url)``.

Offsets and lengths count UTF-16 code units, as Draft.js and the X web
client do, so they are translated to Python string indices before slicing.
An emoji or any other character outside the Basic Multilingual Plane takes
two units but one index.

Ranges are applied from the highest offset down so that rewriting one range
never shifts the offsets of a range that has not been applied yet.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from xmdify.models import EntityRange, LinkEntity, MediaEntity, TweetEntity

from .entities import EntityLookup


def _is_applicable(entity_range: EntityRange) -> bool:
    return (
        entity_range.key is not None
        and entity_range.offset is not None
        and entity_range.length is not None
        and entity_range.length > 0
    )


def _utf16_boundaries(text: str) -> list[int]:
    """Map every UTF-16 unit offset into *text* to a string index.

    The returned list has one entry per code unit plus one for the end.  An
    offset pointing at the low half of a surrogate pair maps to the start of
    that character.
    """
    boundaries: list[int] = []
    for index, char in enumerate(text):
        boundaries.append(index)
        if ord(char) > 0xFFFF:
            boundaries.append(index)
    boundaries.append(len(text))
    return boundaries


def link_url_for_range(
    entity_range: EntityRange,
    lookup: EntityLookup,
    media_link_map: Mapping[int, str],
) -> str | None:
    """Return the URL a range should link to, or ``None``.

    Links use their own URL.  Media use the link paired with the range key
    by :func:`~xmdify.converter.entities.build_media_link_map`.  Tweets and
    dangling keys produce no link.
    """
    if entity_range.key is None:
        return None
    entry = lookup.resolve(entity_range.key)
    value = entry.value if entry is not None else None

    if isinstance(value, LinkEntity):
        return value.url or None
    if isinstance(value, MediaEntity):
        return media_link_map.get(entity_range.key) or None
    if isinstance(value, TweetEntity) or value is None:
        return None
    raise TypeError(f"Unhandled entity type: {type(value).__name__}")


def render_inline_links(
    text: str,
    entity_ranges: Iterable[EntityRange],
    lookup: EntityLookup,
    media_link_map: Mapping[int, str],
) -> str:
    """Rewrite *text* with every resolvable entity range as a Markdown link.

    Parameters
    ----------
    text:
        The block's literal text.
    entity_ranges:
        The block's entity ranges, in any order.  Ranges without an
        integer key and offset or with a non-positive length are ignored.
    lookup:
        Index over the article's entity map.
    media_link_map:
        Media-to-link pairing from :func:`build_media_link_map`.

    Returns
    -------
    str
        The rewritten text.  Ranges whose entity cannot be resolved to a
        URL are left as plain text.
    """
    valid = [r for r in entity_ranges if _is_applicable(r)]
    if not valid:
        return text

    boundaries = _utf16_boundaries(text)
    last_unit = len(boundaries) - 1

    def to_index(unit: int) -> int:
        return boundaries[min(max(unit, 0), last_unit)]

    result = text
    for entity_range in sorted(valid, key=lambda r: r.offset, reverse=True):
        url = link_url_for_range(entity_range, lookup, media_link_map)
        if url is None:
            continue
        start = to_index(entity_range.offset)
        end = to_index(entity_range.offset + entity_range.length)
        result = f"{result[:start]}[{result[start:end]}]({url}){result[end:]}"

    return result
