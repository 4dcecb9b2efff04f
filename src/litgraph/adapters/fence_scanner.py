"""Line scanner for fenced code blocks: location resolution and a built-in extractor."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterator

from ..core.errors import LocationNotFoundError
from ..core.model import Position, RawBlock, SourceLocation, Span
from ..core.patterns import (
    ATTRIBUTES_RE,
    FENCE_RE,
    IDENTIFIER_RE,
    LANGUAGE_RE,
    REFERENCE_RE,
    find_references,
)
from ..core.ports import BlockExtractor, LocationResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fence:
    open_line: int
    close_line: int | None  # None when the document ends inside the fence
    marker: str  # "```" / "````" / "~~~"
    info: str  # everything after the marker on the opening line
    indent: int

    @property
    def attributes(self) -> str | None:
        m = ATTRIBUTES_RE.match(self.info)
        return m.group(1) if m else None

    @property
    def identifier(self) -> str | None:
        # first #name attribute only
        attrs = self.attributes
        if attrs is None:
            return None
        m = IDENTIFIER_RE.search(attrs)
        return m.group(1) if m else None

    @property
    def language(self) -> str:
        attrs = self.attributes
        if attrs is None:
            return ""
        m = LANGUAGE_RE.search(attrs)
        return m.group(1) if m else ""


def split_lines(text: str) -> list[str]:
    """Split on '\\n' only, so line numbers agree with editors; drop '\\r'."""
    return [ln[:-1] if ln.endswith("\r") else ln for ln in text.split("\n")]


def _is_closing(line: str, marker: str) -> bool:
    s = line.strip()
    return len(s) >= len(marker) and s == marker[0] * len(s)


def scan_fences(lines: list[str]) -> Iterator[Fence]:
    """Yield every fenced block in document order."""
    i = 0
    n = len(lines)
    while i < n:
        line = lines[i]
        stripped = line.strip()
        m = FENCE_RE.match(stripped)
        if not m:
            i += 1
            continue

        marker, info = m.group(1), m.group(2)
        if marker[0] == "`" and "`" in info:
            # ```x``` is inline code, not an opener
            i += 1
            continue
        indent = len(line) - len(line.lstrip())
        close = None
        for j in range(i + 1, n):
            if _is_closing(lines[j], marker):
                close = j
                break

        yield Fence(open_line=i, close_line=close, marker=marker, info=info, indent=indent)
        if close is None:
            return
        i = close + 1


class FenceLocationResolver(LocationResolver):
    def locate(
        self, text: str, document_id: str, identifier: str, occurrence_index: int
    ) -> SourceLocation:
        lines = split_lines(text)
        seen = 0

        for fence in scan_fences(lines):
            if fence.identifier != identifier:
                continue
            if seen != occurrence_index:
                seen += 1
                continue

            if fence.close_line is None:
                logger.warning(
                    "No closing fence for #%s (occurrence %d) opened on line %d",
                    identifier,
                    occurrence_index,
                    fence.open_line + 1,
                )
                raise LocationNotFoundError(identifier, occurrence_index, "no closing fence")

            location = self._location(lines, document_id, fence, fence.close_line, identifier)
            logger.debug(
                "Located #%s (occurrence %d) at lines %d-%d",
                identifier,
                occurrence_index,
                fence.open_line + 1,
                fence.close_line + 1,
            )
            return location

        raise LocationNotFoundError(
            identifier, occurrence_index, f"only {seen} matching block(s) in document"
        )

    def _location(
        self,
        lines: list[str],
        document_id: str,
        fence: Fence,
        close_line: int,
        identifier: str,
    ) -> SourceLocation:
        # offset of the attribute string within the raw line
        attrs_at = fence.indent + len(fence.marker) + ATTRIBUTES_RE.match(fence.info).start(1)
        id_at = attrs_at + IDENTIFIER_RE.search(fence.attributes).start(1)
        identifier_span = Span(
            Position(fence.open_line, id_at),
            Position(fence.open_line, id_at + len(identifier)),
        )

        reference_spans = []
        for ln in range(fence.open_line + 1, close_line):
            for m in REFERENCE_RE.finditer(lines[ln]):
                reference_spans.append(
                    (m.group(1), Span(Position(ln, m.start()), Position(ln, m.end())))
                )

        return SourceLocation(
            document_id=document_id,
            span=Span(
                Position(fence.open_line, 0),
                Position(close_line, len(lines[close_line])),
            ),
            identifier_span=identifier_span,
            reference_spans=tuple(reference_spans),
        )


class FenceExtractor(BlockExtractor):
    """
    Extract identified code blocks without pandoc.

    Mirrors what pandoc reports: content without the trailing newline, the
    first class as language, and an unclosed fence running to end of text.
    """

    def extract(self, text: str) -> list[RawBlock]:
        lines = split_lines(text)
        counts: dict[str, int] = defaultdict(int)
        blocks: list[RawBlock] = []

        for fence in scan_fences(lines):
            identifier = fence.identifier
            if not identifier:
                continue
            end = fence.close_line if fence.close_line is not None else len(lines)
            content = "\n".join(lines[fence.open_line + 1 : end])
            blocks.append(
                RawBlock(
                    identifier=identifier,
                    language=fence.language,
                    content=content,
                    references=find_references(content),
                    occurrence_index=counts[identifier],
                )
            )
            counts[identifier] += 1

        logger.debug("Fence scan found %d identified blocks", len(blocks))
        return blocks
