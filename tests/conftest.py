"""Shared test fixtures for the xmdify test suite."""

from __future__ import annotations

import pytest

from xmdify.config import XmdifyConfig
from xmdify.converter.article_to_md import ArticleToMarkdownRenderer
from xmdify.converter.block_renderer import BlockStreamRenderer


@pytest.fixture
def config() -> XmdifyConfig:
    """Default configuration."""
    return XmdifyConfig()


@pytest.fixture
def renderer(config: XmdifyConfig) -> ArticleToMarkdownRenderer:
    """Article renderer using the default config."""
    return ArticleToMarkdownRenderer(config)


@pytest.fixture
def block_renderer(config: XmdifyConfig) -> BlockStreamRenderer:
    """Block stream renderer using the default config."""
    return BlockStreamRenderer(config)
