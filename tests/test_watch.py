"""Tests for watch mode functionality."""

import time

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from litgraph.adapters.fs_storage import FsStorage
from litgraph.runtime import build_runtime
from litgraph.watch import DebounceHandler, apply_batch


@pytest.fixture
def handler(tmp_path):
    batches = []
    h = DebounceHandler(
        FsStorage(tmp_path),
        lambda changed, deleted: batches.append((changed, deleted)),
        debounce_ms=50,
    )
    return h, batches, tmp_path


def test_changes_are_batched(handler):
    h, batches, root = handler

    h.on_created(FileCreatedEvent(str(root / "a.md")))
    h.on_modified(FileModifiedEvent(str(root / "a.md")))
    h.on_modified(FileModifiedEvent(str(root / "b.md")))
    h.flush()

    assert batches == [({"a.md", "b.md"}, set())]


def test_skips_non_documents(handler):
    h, batches, root = handler

    h.on_modified(FileModifiedEvent(str(root / "notes.txt")))
    h.on_modified(FileModifiedEvent(str(root / "a.md.swp")))
    h.on_modified(FileModifiedEvent(str(root / "a.md~")))
    h.on_modified(FileModifiedEvent(str(root / ".git" / "x.md")))
    h.on_modified(DirModifiedEvent(str(root / "sub")))
    h.flush()

    assert batches == []


def test_delete_after_modify(handler):
    h, batches, root = handler

    h.on_modified(FileModifiedEvent(str(root / "a.md")))
    h.on_deleted(FileDeletedEvent(str(root / "a.md")))
    h.flush()

    assert batches == [(set(), {"a.md"})]


def test_move(handler):
    h, batches, root = handler

    h.on_moved(FileMovedEvent(str(root / "old.md"), str(root / "new.md")))
    h.flush()

    assert batches == [({"new.md"}, {"old.md"})]


def test_check_and_flush_waits_for_quiet_period(handler):
    h, batches, root = handler

    h.on_modified(FileModifiedEvent(str(root / "a.md")))
    h.check_and_flush()
    assert batches == []

    time.sleep(0.1)
    h.check_and_flush()
    assert batches == [({"a.md"}, set())]


def test_flush_when_idle_does_nothing(handler):
    h, batches, _ = handler
    h.flush()
    assert batches == []


def test_apply_batch(tmp_path):
    (tmp_path / "a.md").write_text("``` {.text #a}\n<<b>>\n```\n")
    (tmp_path / "b.md").write_text("``` {.text #b}\n<<a>>\n```\n")
    (tmp_path / "bad.md").write_bytes(b"caf\xe9")

    rt = build_runtime(root=tmp_path, extractor_kind="fence")
    try:
        event = apply_batch(rt, {"a.md", "b.md", "bad.md", "gone.md"}, set())
    finally:
        rt.scheduler.shutdown()

    assert event["parsed"] == ["a.md", "b.md"]
    assert event["deleted"] == ["gone.md"]
    assert [e["document"] for e in event["errors"]] == ["bad.md"]
    # both documents may be applied in either order
    assert len(event["cycles"]) == 1
    assert sorted(event["cycles"][0]) == ["a", "b"]
