"""Media URL resolution and media line rendering."""

from __future__ import annotations

import re

from xmdify.models import ArticleDocument, MediaEntity, MediaInfo

_WHITESPACE_RE = re.compile(r"\s+")
_ALT_ESCAPE_RE = re.compile(r"([\[\]])")


def resolve_media_url(info: MediaInfo | None) -> str | None:
    """Pick the single best URL for a media record.

    Priority: the original image, the preview image, the highest bit-rate
    ``video/*`` variant, and finally the first variant of any kind.
    """
    if info is None:
        return None
    if info.original_img_url:
        return info.original_img_url
    if info.preview_img_url:
        return info.preview_img_url

    videos = [
        variant for variant in info.variants
        if variant.content_type and "video" in variant.content_type
    ]
    if videos:
        # sorted() is stable, so equal bit rates keep payload order.
        best = sorted(videos, key=lambda v: v.bit_rate or 0, reverse=True)[0]
        if best.url:
            return best.url
    if info.variants and info.variants[0].url:
        return info.variants[0].url
    return None


def build_media_by_id(document: ArticleDocument) -> dict[str, str]:
    """Map every ``media_id`` with a resolvable URL to that URL."""
    media_by_id: dict[str, str] = {}
    for record in document.media_entities:
        if not record.media_id:
            continue
        url = resolve_media_url(record.media_info)
        if url:
            media_by_id[record.media_id] = url
    return media_by_id


def normalize_caption(caption: str | None) -> str:
    """Trim a caption and collapse internal whitespace runs."""
    if not caption:
        return ""
    return _WHITESPACE_RE.sub(" ", caption.strip())


def escape_alt_text(text: str) -> str:
    """Escape square brackets so *text* is safe inside ``![...]``."""
    return _ALT_ESCAPE_RE.sub(r"\\\1", text)


def render_media_entity(
    entity: MediaEntity,
    media_by_id: dict[str, str],
    used_urls: set[str],
) -> list[str]:
    """Render a media entity as image lines, skipping already used URLs.

    Every emitted URL is added to *used_urls*.
    """
    alt_text = escape_alt_text(normalize_caption(entity.caption))
    lines: list[str] = []

    candidates = [media_by_id.get(item.media_id) for item in entity.media_items if item.media_id]
    candidates.append(entity.fallback_url)

    for url in candidates:
        if url and url not in used_urls:
            used_urls.add(url)
            lines.append(f"![{alt_text}]({url})")
    return lines
