"""Shared fixtures: an engine on the built-in fence extractor."""

import pytest

from litgraph.adapters.fence_scanner import FenceExtractor, FenceLocationResolver
from litgraph.core.engine import LiterateEngine


def markdown_block(identifier, content, language="text"):
    return f"``` {{.{language} #{identifier}}}\n{content}\n```\n"


@pytest.fixture
def engine():
    return LiterateEngine(FenceExtractor(), FenceLocationResolver())


@pytest.fixture
def md():
    """Build Markdown for one named code block."""
    return markdown_block
