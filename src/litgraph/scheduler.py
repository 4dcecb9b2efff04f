"""Off-thread document parsing where newer requests supersede older ones."""

import concurrent.futures
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from .core.engine import LiterateEngine
from .core.errors import LiterateError

logger = logging.getLogger(__name__)


class ParseScheduler:
    """
    Run extraction (the slow, subprocess-bound part) on worker threads.

    Every submit() for a document bumps that document's generation. A finished
    extraction is applied to the registry only if no newer request for the
    same document has been made in the meantime; otherwise the result is
    dropped and the future resolves to False.
    """

    def __init__(self, engine: LiterateEngine, max_workers: int = 2):
        self.engine = engine
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="litgraph-parse"
        )
        self._generations: dict[str, int] = {}
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def _bump(self, document_id: str) -> int:
        with self._lock:
            gen = self._generations.get(document_id, 0) + 1
            self._generations[document_id] = gen
            return gen

    def _is_current(self, document_id: str, gen: int) -> bool:
        with self._lock:
            return self._generations.get(document_id) == gen

    def submit(self, document_id: str, text: str) -> "Future[bool]":
        gen = self._bump(document_id)
        future = self._executor.submit(self._run, document_id, text, gen)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def remove(self, document_id: str) -> None:
        """Drop a document; in-flight parses for it are discarded."""
        self._bump(document_id)
        with self.engine.registry.lock:
            self.engine.remove_document(document_id)
        logger.info("Removed %s", document_id)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, document_id: str, text: str, gen: int) -> bool:
        if not self._is_current(document_id, gen):
            logger.debug("Skipping superseded parse of %s (generation %d)", document_id, gen)
            return False

        try:
            blocks = self.engine.extract(document_id, text)
        except LiterateError as e:
            logger.error("Failed to parse %s: %s", document_id, e)
            raise

        with self.engine.registry.lock:
            if not self._is_current(document_id, gen):
                logger.debug("Discarding stale parse of %s (generation %d)", document_id, gen)
                return False
            self.engine.apply(document_id, blocks)

        logger.info("Parsed %s: %d block(s)", document_id, len(blocks))
        return True

    def wait(self, timeout: float | None = None) -> None:
        """Block until every submitted parse has finished."""
        with self._lock:
            pending = list(self._pending)
        concurrent.futures.wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ParseScheduler":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
