from typing import Protocol, Iterable

from .model import DocumentId, RawBlock, SourceLocation


class BlockExtractor(Protocol):
    """
    Turn raw document text into the ordered list of identified code blocks.
    Raises ExtractionError when the text cannot be converted.
    """

    def extract(self, text: str) -> list[RawBlock]:
        pass


class LocationResolver(Protocol):
    """
    Map (identifier, occurrence index) back to a span of the source text.
    Raises LocationNotFoundError when there is no such block.
    """

    def locate(
        self, text: str, document_id: DocumentId, identifier: str, occurrence_index: int
    ) -> SourceLocation:
        pass


class DocumentStorage(Protocol):
    """
    Where documents come from. Ids are stable, relative and '/'-separated.
    """

    def read_text(self, id: DocumentId) -> str | None:
        pass

    def list_document_ids(self) -> Iterable[DocumentId]:
        pass
