"""Block extraction through pandoc's JSON AST."""

import hashlib
import json
import logging
import subprocess
import threading
from collections import OrderedDict, defaultdict
from typing import Any

from ..core.errors import ExtractionError
from ..core.model import RawBlock
from ..core.patterns import find_references
from ..core.ports import BlockExtractor

logger = logging.getLogger(__name__)


def _collect_code_blocks(node: Any, out: list[dict[str, Any]]) -> None:
    # CodeBlock nodes can sit inside lists, quotes and divs at any depth
    if isinstance(node, dict):
        if node.get("t") == "CodeBlock":
            out.append(node)
            return
        children = node.get("c")
        if isinstance(children, (list, dict)):
            _collect_code_blocks(children, out)
    elif isinstance(node, list):
        for child in node:
            _collect_code_blocks(child, out)


def blocks_from_ast(ast: Any) -> list[RawBlock]:
    """
    Pull identified code blocks out of a pandoc AST.

    A CodeBlock is ``{"t": "CodeBlock", "c": [[id, classes, kvs], content]}``.
    Blocks without an identifier are skipped.
    """
    if not isinstance(ast, dict) or not isinstance(ast.get("blocks"), list):
        raise ExtractionError("Invalid AST structure")

    nodes: list[dict[str, Any]] = []
    _collect_code_blocks(ast["blocks"], nodes)

    counts: dict[str, int] = defaultdict(int)
    blocks: list[RawBlock] = []
    for node in nodes:
        try:
            (identifier, classes, _kvs), content = node["c"]
        except (KeyError, TypeError, ValueError) as e:
            raise ExtractionError(f"Malformed CodeBlock node: {e}") from e

        if not isinstance(content, str):
            raise ExtractionError("Malformed CodeBlock node: content is not text")

        identifier = (identifier or "").lstrip("#")
        if not identifier:
            continue

        language = classes[0].lstrip(".") if classes else ""
        blocks.append(
            RawBlock(
                identifier=identifier,
                language=language,
                content=content,
                references=find_references(content),
                occurrence_index=counts[identifier],
            )
        )
        counts[identifier] += 1

    return blocks


class PandocExtractor(BlockExtractor):
    def __init__(
        self,
        executable: str = "pandoc",
        input_format: str = "markdown",
        timeout: float | None = 30.0,
    ):
        self.executable = executable
        self.input_format = input_format
        self.timeout = timeout

    def convert_to_ast(self, text: str) -> Any:
        args = [self.executable, "-f", self.input_format, "-t", "json"]
        logger.debug("Executing %s (%d chars)", " ".join(args), len(text))

        try:
            proc = subprocess.run(
                args,
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExtractionError(f"{self.executable} not found", str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(f"{self.executable} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ExtractionError(f"Failed to execute {self.executable}", str(e)) from e

        if proc.returncode != 0:
            logger.error("pandoc exited with code %d", proc.returncode)
            raise ExtractionError(f"pandoc exited with code {proc.returncode}", proc.stderr)

        try:
            return json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            raise ExtractionError("Failed to parse pandoc output", str(e)) from e

    def extract(self, text: str) -> list[RawBlock]:
        blocks = blocks_from_ast(self.convert_to_ast(text))
        logger.debug("Extracted %d code blocks", len(blocks))
        return blocks


class CachingExtractor(BlockExtractor):
    """Bounded LRU cache of extraction results, keyed by a hash of the text."""

    def __init__(self, inner: BlockExtractor, maxsize: int = 64):
        self.inner = inner
        self.maxsize = maxsize
        self._cache: OrderedDict[str, list[RawBlock]] = OrderedDict()
        self._lock = threading.Lock()

    def extract(self, text: str) -> list[RawBlock]:
        key = hashlib.sha256(text.encode("utf-8")).hexdigest()
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                return list(self._cache[key])

        # failures propagate and are not cached
        blocks = self.inner.extract(text)

        if self.maxsize > 0:
            with self._lock:
                self._cache[key] = list(blocks)
                self._cache.move_to_end(key)
                while len(self._cache) > self.maxsize:
                    self._cache.popitem(last=False)
        return blocks

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
