"""Expansion ("tangling") of reference markers."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from .errors import BlockNotFoundError
from .model import Block, Identifier
from .patterns import REFERENCE_RE
from .registry import BlockRegistry

logger = logging.getLogger(__name__)


def circular_placeholder(identifier: Identifier) -> str:
    return f"<<circular reference to {identifier}>>"


def not_found_placeholder(identifier: Identifier) -> str:
    return f"<<{identifier} not found>>"


def _segments(blocks: list[Block]) -> Iterator[tuple[bool, str]]:
    """(is_reference, text) pieces of each occurrence, each followed by a newline."""
    for block in blocks:
        pos = 0
        for m in REFERENCE_RE.finditer(block.content):
            yield False, block.content[pos : m.start()]
            yield True, m.group(1)
            pos = m.end()
        yield False, block.content[pos:]
        yield False, "\n"


@dataclass
class _Frame:
    identifier: Identifier
    segments: Iterator[tuple[bool, str]]
    parts: list[str] = field(default_factory=list)


class ContentExpander:
    def __init__(self, registry: BlockRegistry):
        self.registry = registry

    def _open(self, identifier: Identifier, on_path: set[Identifier]) -> "_Frame | str":
        if identifier in on_path:
            logger.warning("Circular reference to %s during expansion", identifier)
            return circular_placeholder(identifier)

        blocks = self.registry.lookup(identifier)
        if not blocks:
            logger.warning("Block %s not found during expansion", identifier)
            return not_found_placeholder(identifier)

        return _Frame(identifier, _segments(blocks))

    def expand(
        self, identifier: Identifier, visited: frozenset[Identifier] = frozenset()
    ) -> str:
        """
        Expand an identifier's occurrences, each followed by a newline.

        `visited` seeds the set of identifiers on the current path. A frame's
        identifier stays on the path only while that frame is open, so two
        siblings may both expand the same identifier; only a true ancestor
        cycle yields the placeholder. Runs on an explicit stack, so chain
        length is not limited by the interpreter's recursion limit.
        """
        on_path = set(visited)
        top = self._open(identifier, on_path)
        if isinstance(top, str):
            return top

        stack = [top]
        on_path.add(top.identifier)
        while True:
            frame = stack[-1]
            for is_reference, text in frame.segments:
                if not is_reference:
                    frame.parts.append(text)
                    continue
                child = self._open(text, on_path)
                if isinstance(child, str):
                    frame.parts.append(child)
                    continue
                stack.append(child)
                on_path.add(child.identifier)
                break
            else:
                stack.pop()
                on_path.discard(frame.identifier)
                done = "".join(frame.parts)
                if not stack:
                    return done
                stack[-1].parts.append(done)

    def expand_top_level(self, identifier: Identifier) -> str:
        """Like expand(), but an unknown identifier is an error rather than a placeholder."""
        if not self.registry.lookup(identifier):
            raise BlockNotFoundError(identifier)
        return self.expand(identifier)
