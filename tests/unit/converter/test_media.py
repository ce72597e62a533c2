"""Tests for media URL resolution and media line rendering."""

from __future__ import annotations

from xmdify.converter.media import (
    build_media_by_id,
    escape_alt_text,
    normalize_caption,
    render_media_entity,
    resolve_media_url,
)
from xmdify.models import (
    ArticleDocument,
    MediaEntity,
    MediaEntityRecord,
    MediaInfo,
    MediaItem,
    VideoVariant,
)


def _video(url, bit_rate=None, content_type="video/mp4"):
    return VideoVariant(url=url, bit_rate=bit_rate, content_type=content_type)


class TestResolveMediaUrl:
    def test_none_info(self):
        assert resolve_media_url(None) is None

    def test_empty_info(self):
        assert resolve_media_url(MediaInfo()) is None

    def test_original_image_wins(self):
        info = MediaInfo(
            original_img_url="https://img/orig.jpg",
            preview_img_url="https://img/preview.jpg",
            variants=(_video("https://v/1.mp4", 100),),
        )
        assert resolve_media_url(info) == "https://img/orig.jpg"

    def test_preview_image_second(self):
        info = MediaInfo(
            preview_img_url="https://img/preview.jpg",
            variants=(_video("https://v/1.mp4", 100),),
        )
        assert resolve_media_url(info) == "https://img/preview.jpg"

    def test_highest_bitrate_video(self):
        info = MediaInfo(variants=(
            VideoVariant(url="https://v/playlist.m3u8", content_type="application/x-mpegURL"),
            _video("https://v/low.mp4", 256_000),
            _video("https://v/high.mp4", 2_176_000),
            _video("https://v/mid.mp4", 832_000),
        ))
        assert resolve_media_url(info) == "https://v/high.mp4"

    def test_equal_bitrate_keeps_first(self):
        info = MediaInfo(variants=(
            _video("https://v/a.mp4", 500),
            _video("https://v/b.mp4", 500),
        ))
        assert resolve_media_url(info) == "https://v/a.mp4"

    def test_missing_bitrate_counts_as_zero(self):
        info = MediaInfo(variants=(
            _video("https://v/none.mp4"),
            _video("https://v/some.mp4", 1),
        ))
        assert resolve_media_url(info) == "https://v/some.mp4"

    def test_first_variant_as_last_resort(self):
        info = MediaInfo(variants=(
            VideoVariant(url="https://v/playlist.m3u8", content_type="application/x-mpegURL"),
            VideoVariant(url="https://v/other"),
        ))
        assert resolve_media_url(info) == "https://v/playlist.m3u8"


class TestBuildMediaById:
    def test_maps_resolvable_records(self):
        document = ArticleDocument(media_entities=(
            MediaEntityRecord(media_id="1", media_info=MediaInfo(original_img_url="https://img/1")),
            MediaEntityRecord(media_id="2", media_info=MediaInfo()),
            MediaEntityRecord(media_id=None, media_info=MediaInfo(original_img_url="https://img/x")),
        ))
        assert build_media_by_id(document) == {"1": "https://img/1"}


class TestCaptions:
    def test_normalize_collapses_whitespace(self):
        assert normalize_caption("  a \n\t b  ") == "a b"

    def test_normalize_empty(self):
        assert normalize_caption(None) == ""
        assert normalize_caption("   ") == ""

    def test_escape_brackets(self):
        assert escape_alt_text("a [b] c") == r"a \[b\] c"


class TestRenderMediaEntity:
    def test_renders_items_then_fallback(self):
        entity = MediaEntity(
            media_items=(MediaItem("1"), MediaItem("2")),
            caption="Nice [pic]",
            fallback_url="https://img/fallback",
        )
        used: set[str] = set()
        lines = render_media_entity(
            entity, {"1": "https://img/1", "2": "https://img/2"}, used,
        )
        assert lines == [
            r"![Nice \[pic\]](https://img/1)",
            r"![Nice \[pic\]](https://img/2)",
            r"![Nice \[pic\]](https://img/fallback)",
        ]
        assert used == {"https://img/1", "https://img/2", "https://img/fallback"}

    def test_skips_used_and_unknown(self):
        entity = MediaEntity(media_items=(MediaItem("1"), MediaItem("404")))
        used = {"https://img/1"}
        assert render_media_entity(entity, {"1": "https://img/1"}, used) == []

    def test_same_url_twice_emitted_once(self):
        entity = MediaEntity(
            media_items=(MediaItem("1"),),
            fallback_url="https://img/1",
        )
        assert render_media_entity(entity, {"1": "https://img/1"}, set()) == ["![](https://img/1)"]
