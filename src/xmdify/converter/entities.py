"""Entity map indexing and the media-to-link pairing heuristic.

Entity ranges in X articles address the entity map by a number that is
*usually* the entry's declared ``key`` but sometimes its position in the
map.  :class:`EntityLookup` resolves both.

:func:`build_media_link_map` pairs media entities with link entities so that
an image range can be rendered as a clickable link.  The payload carries no
explicit relation between the two; the pairing is a best-effort heuristic
based on key order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from xmdify.models import EntityMapEntry, LinkEntity, MediaEntity

EntityMap = Mapping[str, EntityMapEntry]


def _positional_index(idx: str) -> int | None:
    try:
        return int(idx.strip())
    except ValueError:
        return None


@dataclass
class EntityLookup:
    """Lookup tables over one entity map.

    Attributes
    ----------
    entity_map:
        The raw ``{index: entry}`` mapping, used as the last resort.
    by_index:
        Entries keyed by their numeric positional index.
    by_logical_key:
        Entries keyed by their declared logical key.  On duplicates the
        first entry in map order wins.
    """

    entity_map: EntityMap = field(default_factory=dict)
    by_index: dict[int, EntityMapEntry] = field(default_factory=dict)
    by_logical_key: dict[int, EntityMapEntry] = field(default_factory=dict)

    @classmethod
    def build(cls, entity_map: EntityMap | Iterable[tuple[str, EntityMapEntry]] | None) -> EntityLookup:
        """Index *entity_map* (a mapping or ``(index, entry)`` pairs)."""
        if entity_map is None:
            return cls()
        if not isinstance(entity_map, Mapping):
            entity_map = dict(entity_map)

        lookup = cls(entity_map=entity_map)
        for idx, entry in entity_map.items():
            position = _positional_index(idx)
            if position is not None:
                lookup.by_index[position] = entry

            logical_key = entry.logical_key
            if logical_key is not None and logical_key not in lookup.by_logical_key:
                lookup.by_logical_key[logical_key] = entry
        return lookup

    def resolve(self, key: int | None) -> EntityMapEntry | None:
        """Find the entry addressed by an entity range key.

        Tries the logical key, then the positional index, then a raw
        string lookup.  Returns ``None`` when nothing matches.
        """
        if key is None:
            return None
        entry = self.by_logical_key.get(key)
        if entry is not None:
            return entry
        entry = self.by_index.get(key)
        if entry is not None:
            return entry
        return self.entity_map.get(str(key))


def build_media_link_map(entity_map: EntityMap | None) -> dict[int, str]:
    """Pair media entities with link entities by logical key order.

    Media and links are each sorted by logical key.  Every media entity, in
    order, takes the first remaining link whose key is greater than its own,
    or the first remaining link if there is none.  The link is removed from
    the pool.  Once the pool is empty the remaining media get no link.

    Both the media entry's positional index and its logical key map to the
    link URL.

    Example: media keys ``[1, 3]`` and link keys ``[2, 4]`` give
    ``{1: url2, 3: url4}``; with media ``[5]`` alone the result is
    ``{5: url2}`` (wrap-around to the first link).
    """
    mapping: dict[int, str] = {}
    if not entity_map:
        return mapping

    media: list[tuple[int | None, int]] = []
    links: list[tuple[int, str]] = []

    for idx, entry in entity_map.items():
        if entry.value is None:
            continue
        key = entry.logical_key
        if key is None:
            continue
        if isinstance(entry.value, MediaEntity):
            media.append((_positional_index(idx), key))
        elif isinstance(entry.value, LinkEntity):
            links.append((key, entry.value.url))

    if not media or not links:
        return mapping

    media.sort(key=lambda item: item[1])
    pool = sorted(links, key=lambda item: item[0])

    for position, key in media:
        if not pool:
            break
        pick = next((i for i, (link_key, _) in enumerate(pool) if link_key > key), 0)
        _, url = pool.pop(pick)
        if position is not None:
            mapping[position] = url
        mapping[key] = url

    return mapping
