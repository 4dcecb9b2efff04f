"""Block/reference resolution engine."""

from .engine import LiterateEngine
from .errors import (
    BlockNotFoundError,
    CircularReferenceError,
    DocumentParseError,
    ExtractionError,
    LiterateError,
    LocationNotFoundError,
)
from .model import Block, CircularReference, Location, RawBlock, SourceLocation
from .registry import BlockRegistry

__all__ = [
    "LiterateEngine",
    "BlockRegistry",
    "Block",
    "RawBlock",
    "Location",
    "SourceLocation",
    "CircularReference",
    "LiterateError",
    "ExtractionError",
    "DocumentParseError",
    "LocationNotFoundError",
    "BlockNotFoundError",
    "CircularReferenceError",
]
