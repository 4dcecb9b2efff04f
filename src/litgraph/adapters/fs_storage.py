from pathlib import Path
from typing import Iterable
from ..core.errors import DocumentParseError
from ..core.ports import DocumentStorage


class FsStorage(DocumentStorage):
    """Documents under a root directory; ids are root-relative POSIX paths."""

    def __init__(self, root: Path, glob: str = "**/*.md"):
        self.root = root
        self.glob = glob

    def path(self, id: str) -> Path:
        return self.root / id

    def document_id(self, path: Path) -> str:
        return path.resolve().relative_to(self.root.resolve()).as_posix()

    def matches(self, path: Path) -> bool:
        try:
            rel = Path(self.document_id(path))
        except ValueError:
            return False
        if any(part.startswith(".") for part in rel.parts):
            return False
        # Path.match anchors from the right, so "**/*.md" also matches "a.md"
        return rel.match(self.glob) or rel.match(self.glob.removeprefix("**/"))

    def read_text(self, id: str) -> str | None:
        """None when the file is gone; DocumentParseError when it cannot be read as UTF-8."""
        p = self.path(id)
        if not p.is_file():
            return None
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentParseError(str(e), id) from e

    def list_document_ids(self) -> Iterable[str]:
        if not self.root.exists():
            return []
        ids = []
        for p in self.root.glob(self.glob):
            rel = p.relative_to(self.root)
            if p.is_file() and not any(part.startswith(".") for part in rel.parts):
                ids.append(rel.as_posix())
        return sorted(ids)
