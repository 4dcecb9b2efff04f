from __future__ import annotations
from dataclasses import dataclass, field

DocumentId = str
Identifier = str


@dataclass(frozen=True, order=True)
class Position:
    line: int  # 0-based
    character: int  # 0-based, within the line


@dataclass(frozen=True)
class Span:
    start: Position
    end: Position

    def contains(self, pos: Position) -> bool:
        return self.start <= pos <= self.end


@dataclass(frozen=True)
class Location:
    document_id: DocumentId
    span: Span


@dataclass(frozen=True)
class SourceLocation(Location):
    identifier_span: Span | None = None
    # (identifier, span) for every <<id>> marker in the block body
    reference_spans: tuple[tuple[Identifier, Span], ...] = ()


@dataclass(frozen=True)
class RawBlock:
    """A code block as reported by an extractor, before location resolution."""

    identifier: Identifier
    language: str
    content: str
    references: tuple[Identifier, ...] = ()
    occurrence_index: int = 0


@dataclass(eq=False)
class Block:
    identifier: Identifier
    occurrence_index: int
    language: str
    content: str
    references: tuple[Identifier, ...]
    location: SourceLocation
    dependencies: set[Identifier] = field(default_factory=set)
    dependents: set[Identifier] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not self.dependencies:
            self.dependencies = set(self.references)

    @property
    def document_id(self) -> DocumentId:
        return self.location.document_id

    @classmethod
    def from_raw(cls, raw: RawBlock, location: SourceLocation) -> "Block":
        return cls(
            identifier=raw.identifier,
            occurrence_index=raw.occurrence_index,
            language=raw.language,
            content=raw.content,
            references=raw.references,
            location=location,
        )


@dataclass(frozen=True)
class CircularReference:
    path: tuple[Identifier, ...]
    start: Identifier
