"""Rendering of blocks and locations for CLI and API output."""

from typing import Any

from .core.model import Block, CircularReference, Location, SourceLocation, Span


def span_to_dict(span: Span) -> dict[str, Any]:
    """
    Span as JSON, with 0-based positions.

    Lines are 0-based here (editor convention); human output is 1-based.
    """
    return {
        "start": {"line": span.start.line, "character": span.start.character},
        "end": {"line": span.end.line, "character": span.end.character},
    }


def location_to_dict(loc: Location) -> dict[str, Any]:
    result: dict[str, Any] = {"document": loc.document_id, "range": span_to_dict(loc.span)}
    if isinstance(loc, SourceLocation) and loc.identifier_span is not None:
        result["identifier_range"] = span_to_dict(loc.identifier_span)
    return result


def block_to_dict(block: Block) -> dict[str, Any]:
    return {
        "id": block.identifier,
        "occurrence": block.occurrence_index,
        "language": block.language,
        "references": list(block.references),
        "dependents": sorted(block.dependents),
        "location": location_to_dict(block.location),
    }


def cycle_to_dict(cycle: CircularReference) -> dict[str, Any]:
    return {"start": cycle.start, "path": list(cycle.path)}


def format_location(loc: Location) -> str:
    """document:line:column, 1-based, the way compilers print them."""
    span = loc.span
    return f"{loc.document_id}:{span.start.line + 1}:{span.start.character + 1}"
