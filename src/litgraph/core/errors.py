"""Exception hierarchy for the block resolution engine."""

from collections.abc import Sequence


class LiterateError(Exception):
    """Base class for all litgraph errors."""


class ExtractionError(LiterateError):
    """The Markdown converter failed or returned something we cannot read."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        detail = f"\nDetails: {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Extraction failed: {message}{detail}")


class DocumentParseError(LiterateError):
    def __init__(self, message: str, document_id: str):
        self.document_id = document_id
        super().__init__(f"Failed to parse document {document_id}: {message}")


class LocationNotFoundError(LiterateError):
    """An extracted block could not be matched back to the source text."""

    def __init__(self, identifier: str, occurrence_index: int, reason: str):
        self.identifier = identifier
        self.occurrence_index = occurrence_index
        self.reason = reason
        super().__init__(
            f"Could not locate block #{identifier} (occurrence {occurrence_index}): {reason}"
        )


class BlockNotFoundError(LiterateError):
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f'Block with identifier "{identifier}" not found')


class CircularReferenceError(LiterateError):
    """
    Describes a reference cycle.

    Expansion never raises this; cycles are reported by the detector and
    replaced by placeholder text during expansion.
    """

    def __init__(self, path: Sequence[str]):
        self.path = tuple(path)
        chain = " -> ".join([*self.path, self.path[0]]) if self.path else ""
        super().__init__(f"Circular reference detected: {chain}")
