"""Quoted-tweet helpers shared by the renderer and the tweet resolver."""

from __future__ import annotations

import re

from xmdify.models import ReferencedTweetInfo

_LINE_BREAK_RE = re.compile(r"(?:\r?\n)+")

ELLIPSIS = "..."


def build_tweet_url(tweet_id: str, username: str | None = None) -> str:
    """Canonical URL of a tweet, with the author handle when known."""
    if username:
        return f"https://x.com/{username}/status/{tweet_id}"
    return f"https://x.com/i/web/status/{tweet_id}"


def summarize_tweet_text(text: str | None, max_chars: int = 280) -> str:
    """Collapse *text* to one line and cap it at *max_chars* characters.

    Lines are stripped, empty lines dropped and the rest joined with single
    spaces.  Longer results are cut and end with ``...``; the ellipsis
    counts towards *max_chars*.
    """
    if not text or not text.strip():
        return ""
    lines = (line.strip() for line in _LINE_BREAK_RE.split(text.strip()))
    normalized = " ".join(line for line in lines if line)
    if len(normalized) <= max_chars:
        return normalized
    return normalized[: max_chars - len(ELLIPSIS)] + ELLIPSIS


def format_author(info: ReferencedTweetInfo | None) -> str | None:
    """``Name (@handle)``, ``@handle`` or ``Name``, whichever is known."""
    if info is None:
        return None
    if info.author_name and info.author_username:
        return f"{info.author_name} (@{info.author_username})"
    if info.author_username:
        return f"@{info.author_username}"
    return info.author_name or None


def render_tweet_quote(
    tweet_id: str,
    referenced: ReferencedTweetInfo | None,
    *,
    label: str,
    max_chars: int = 280,
) -> list[str]:
    """Render a quoted tweet as blockquote lines.

    The first line carries *label* and the author, the optional second line
    the summarized text, and the last line the tweet URL.
    """
    url = (referenced.url if referenced is not None else None) or build_tweet_url(
        tweet_id,
        referenced.author_username if referenced is not None else None,
    )
    author = format_author(referenced)

    lines = [f"> {label}：{author}" if author else f"> {label}"]
    summary = summarize_tweet_text(
        referenced.text if referenced is not None else None,
        max_chars,
    )
    if summary:
        lines.append(f"> {summary}")
    lines.append(f"> {url}")
    return lines
