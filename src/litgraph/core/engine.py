import logging

from .errors import DocumentParseError, LiterateError, LocationNotFoundError
from .expander import ContentExpander
from .graph import find_circular_references
from .model import Block, CircularReference, DocumentId, Location, Position, SourceLocation
from .ports import BlockExtractor, LocationResolver
from .registry import BlockRegistry

logger = logging.getLogger(__name__)


class LiterateEngine:
    """
    Blocks, references and expansion for a set of literate documents.

    The engine is an ordinary object: build as many as you like, each with its
    own registry. All mutation goes through the registry lock.
    """

    def __init__(
        self,
        extractor: BlockExtractor,
        resolver: LocationResolver,
        registry: BlockRegistry | None = None,
    ):
        self.extractor = extractor
        self.resolver = resolver
        self.registry = registry if registry is not None else BlockRegistry()
        self.expander = ContentExpander(self.registry)

    def extract(self, document_id: DocumentId, text: str) -> list[Block]:
        """Convert and locate a document's blocks without touching the registry."""
        raw_blocks = self.extractor.extract(text)

        blocks = []
        for raw in raw_blocks:
            try:
                location = self.resolver.locate(
                    text, document_id, raw.identifier, raw.occurrence_index
                )
            except LocationNotFoundError as e:
                logger.warning("%s: dropping block: %s", document_id, e)
                continue
            blocks.append(Block.from_raw(raw, location))
        return blocks

    def apply(self, document_id: DocumentId, blocks: list[Block]) -> list[CircularReference]:
        """Replace a document's blocks and report the cycles that result."""
        with self.registry.lock:
            self.registry.replace_document(document_id, blocks)
            cycles = find_circular_references(self.registry)

        if cycles:
            logger.warning(
                "Circular references detected: %s",
                "; ".join(" -> ".join(c.path) for c in cycles),
            )
        return cycles

    def parse_document(self, document_id: DocumentId, text: str) -> list[Block]:
        """
        Re-parse one document.

        All or nothing: if extraction fails the document's previous blocks
        stay registered.
        """
        logger.debug("Parsing %s", document_id)
        try:
            blocks = self.extract(document_id, text)
        except LiterateError:
            raise
        except Exception as e:
            raise DocumentParseError(str(e), document_id) from e

        self.apply(document_id, blocks)
        logger.info("Parsed %s: %d block(s)", document_id, len(blocks))
        return blocks

    def remove_document(self, document_id: DocumentId) -> None:
        self.registry.remove_document(document_id)

    def find_definition(self, identifier: str) -> SourceLocation | None:
        blocks = self.registry.lookup(identifier)
        if not blocks:
            logger.debug("No definition for %s", identifier)
            return None
        return blocks[0].location

    def find_references(self, identifier: str) -> list[Location]:
        """Every occurrence of the identifier, then every marker that refers to it."""
        with self.registry.lock:
            locations: list[Location] = [b.location for b in self.registry.lookup(identifier)]
            for block in self.registry.blocks():
                if identifier not in block.dependencies:
                    continue
                spans = [s for name, s in block.location.reference_spans if name == identifier]
                if spans:
                    locations.extend(Location(block.document_id, s) for s in spans)
                else:
                    locations.append(block.location)
        return locations

    def reference_at(self, document_id: DocumentId, line: int, character: int) -> str | None:
        """Identifier under a cursor: a <<marker>> or a block's own #name."""
        pos = Position(line, character)
        for block in self.registry.document_blocks(document_id):
            loc = block.location
            if not loc.span.contains(pos):
                continue
            if loc.identifier_span is not None and loc.identifier_span.contains(pos):
                return block.identifier
            for name, span in loc.reference_spans:
                if span.contains(pos):
                    return name
        return None

    def find_circular_references(self) -> list[CircularReference]:
        with self.registry.lock:
            return find_circular_references(self.registry)

    def get_expanded_content(self, identifier: str) -> str:
        with self.registry.lock:
            return self.expander.expand_top_level(identifier)

    def clear_cache(self) -> None:
        self.registry.clear()
        clear = getattr(self.extractor, "clear", None)
        if callable(clear):
            clear()
        logger.info("Cache cleared")
