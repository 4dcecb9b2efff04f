import itertools
import logging
import threading
from collections.abc import Iterable, Iterator

from .graph import rebuild_dependents
from .model import Block, DocumentId, Identifier

logger = logging.getLogger(__name__)


class BlockRegistry:
    """
    Identifier -> ordered occurrences, across every parsed document.

    Occurrences are ordered by the order in which their document was first
    registered, then by occurrence index. A document's blocks are only ever
    replaced wholesale; the new mapping is built aside and swapped in, and
    dependents are rebuilt before the lock is released.
    """

    def __init__(self) -> None:
        self._blocks: dict[Identifier, list[Block]] = {}
        self._ids_by_document: dict[DocumentId, set[Identifier]] = {}
        self._document_order: dict[DocumentId, int] = {}
        self._counter = itertools.count()
        self.lock = threading.RLock()

    def replace_document(self, document_id: DocumentId, blocks: Iterable[Block]) -> None:
        blocks = list(blocks)
        for block in blocks:
            if block.document_id != document_id:
                raise ValueError(
                    f"Block #{block.identifier} belongs to {block.document_id}, not {document_id}"
                )

        with self.lock:
            new = dict(self._blocks)

            # drop this document's previous occurrences; keys stay in place
            # so identifiers keep their position when they come back
            for identifier in self._ids_by_document.get(document_id, ()):
                if identifier in new:
                    new[identifier] = [
                        b for b in new[identifier] if b.document_id != document_id
                    ]

            if document_id not in self._document_order:
                self._document_order[document_id] = next(self._counter)

            touched: set[Identifier] = set()
            for block in blocks:
                if block.identifier not in touched:
                    new[block.identifier] = list(new.get(block.identifier, []))
                    touched.add(block.identifier)
                new[block.identifier].append(block)

            for identifier in touched:
                new[identifier].sort(
                    key=lambda b: (self._document_order[b.document_id], b.occurrence_index)
                )

            self._blocks = {k: v for k, v in new.items() if v}
            self._ids_by_document[document_id] = {b.identifier for b in blocks}
            rebuild_dependents(self._blocks)

        logger.debug(
            "Registered %d block(s) for %s (%d identifiers total)",
            len(blocks),
            document_id,
            len(self._blocks),
        )

    def remove_document(self, document_id: DocumentId) -> None:
        with self.lock:
            self.replace_document(document_id, [])
            self._ids_by_document.pop(document_id, None)
            self._document_order.pop(document_id, None)

    def lookup(self, identifier: Identifier) -> list[Block]:
        with self.lock:
            return list(self._blocks.get(identifier, ()))

    def all_identifiers(self) -> set[Identifier]:
        with self.lock:
            return set(self._blocks)

    def identifiers(self) -> list[Identifier]:
        """Identifiers in insertion order."""
        with self.lock:
            return list(self._blocks)

    def dependencies_of(self, identifier: Identifier) -> list[Identifier]:
        """Referenced identifiers over all occurrences, first mention first."""
        with self.lock:
            deps: dict[Identifier, None] = {}
            for block in self._blocks.get(identifier, ()):
                deps.update(dict.fromkeys(block.references))
            return list(deps)

    def blocks(self) -> Iterator[Block]:
        with self.lock:
            snapshot = [b for blocks in self._blocks.values() for b in blocks]
        return iter(snapshot)

    def document_ids(self) -> list[DocumentId]:
        with self.lock:
            return sorted(self._ids_by_document, key=lambda d: self._document_order[d])

    def document_blocks(self, document_id: DocumentId) -> list[Block]:
        """A document's blocks in source order."""
        with self.lock:
            found = [
                b
                for identifier in self._ids_by_document.get(document_id, ())
                for b in self._blocks.get(identifier, ())
                if b.document_id == document_id
            ]
        return sorted(found, key=lambda b: b.location.span.start)

    def clear(self) -> None:
        with self.lock:
            self._blocks = {}
            self._ids_by_document = {}
            self._document_order = {}

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)
