"""Watch mode for litgraph - file watcher with debounced re-parsing."""

import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.fs_storage import FsStorage
from .core.errors import LiterateError

logger = logging.getLogger(__name__)


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(
        self,
        storage: FsStorage,
        on_batch: Callable[[set[str], set[str]], None],
        debounce_ms: int = 300,
    ):
        super().__init__()
        self.storage = storage
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        # Track pending changes by document id
        self.changed: set[str] = set()
        self.deleted: set[str] = set()
        self.last_event_time = 0.0

    def _should_skip(self, path: Path) -> bool:
        """Check if file should be skipped."""
        name = path.name

        # Skip temp/swap files
        if name.endswith("~") or name.endswith(".swp") or name.startswith(".#"):
            return True

        return not self.storage.matches(path)

    def _extract_id(self, path: Path) -> str | None:
        """Extract document ID from path."""
        if self._should_skip(path):
            return None
        return self.storage.document_id(path)

    def _mark_changed(self, src: Any) -> None:
        doc_id = self._extract_id(Path(str(src)))
        if doc_id:
            self.changed.add(doc_id)
            self.deleted.discard(doc_id)
            self.last_event_time = time.time()

    def _mark_deleted(self, src: Any) -> None:
        doc_id = self._extract_id(Path(str(src)))
        if doc_id:
            self.deleted.add(doc_id)
            self.changed.discard(doc_id)
            self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._mark_changed(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._mark_changed(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._mark_deleted(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._mark_deleted(event.src_path)
            self._mark_changed(event.dest_path)

    def check_and_flush(self) -> None:
        """Check if debounce period has elapsed and flush if so."""
        if not (self.changed or self.deleted):
            return

        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Process accumulated events."""
        if not (self.changed or self.deleted):
            return

        changed = set(self.changed)
        deleted = set(self.deleted)
        self.changed.clear()
        self.deleted.clear()

        if self.on_batch:
            self.on_batch(changed, deleted)


def apply_batch(runtime: Any, changed: set[str], deleted: set[str]) -> dict[str, Any]:
    """
    Re-parse changed documents and drop deleted ones.

    Returns the batch event: parsed and deleted ids, per-document errors and
    the cycles present afterwards.
    """
    start_time = time.time()
    storage: FsStorage = runtime.storage
    scheduler = runtime.scheduler
    deleted = set(deleted)

    futures = []
    errors: list[dict[str, str]] = []
    for doc_id in sorted(changed):
        try:
            text = storage.read_text(doc_id)
        except LiterateError as e:
            logger.error("%s", e)
            errors.append({"document": doc_id, "message": str(e)})
            continue
        if text is None:
            deleted.add(doc_id)
            continue
        futures.append((doc_id, scheduler.submit(doc_id, text)))
    for doc_id in sorted(deleted):
        scheduler.remove(doc_id)

    parsed: list[str] = []
    for doc_id, future in futures:
        exc = future.exception()
        if exc is not None:
            errors.append({"document": doc_id, "message": str(exc)})
        elif future.result():
            parsed.append(doc_id)

    cycles = runtime.engine.find_circular_references()
    return {
        "type": "batch",
        "parsed": parsed,
        "deleted": sorted(deleted),
        "errors": errors,
        "cycles": [list(c.path) for c in cycles],
        "duration_ms": int((time.time() - start_time) * 1000),
    }


def watch_documents(
    runtime: Any,
    debounce_ms: int | None = None,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the document root and re-parse documents as they change.

    Args:
        runtime: Runtime with engine, storage and scheduler
        debounce_ms: Debounce window in milliseconds (default: from config)
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    storage: FsStorage = runtime.storage
    scheduler = runtime.scheduler
    if debounce_ms is None:
        debounce_ms = runtime.config.watch.debounce_ms

    if not storage.root.exists():
        print(f"Error: Document root not found: {storage.root}", file=sys.stderr)
        return 1

    running = True

    def handle_batch(changed: set[str], deleted: set[str]) -> None:
        """Handle a batch of changes."""
        event = apply_batch(runtime, changed, deleted)

        if json_output:
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Parsed: ~{len(event['parsed'])} -{len(event['deleted'])} "
                f"!{len(event['errors'])} ({event['duration_ms']}ms)",
                flush=True,
            )
            for err in event["errors"]:
                print(f"Error: {err['document']}: {err['message']}", file=sys.stderr, flush=True)

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(storage, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(storage.root), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {storage.root} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()
    logger.debug("Observer started on %s", storage.root)

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()
        scheduler.shutdown()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
