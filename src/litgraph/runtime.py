"""Runtime wiring helper for CLI applications."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .adapters.fence_scanner import FenceExtractor, FenceLocationResolver
from .adapters.fs_storage import FsStorage
from .adapters.pandoc import CachingExtractor, PandocExtractor
from .config import ExtractorConfig, LitConfig, load_config
from .core.engine import LiterateEngine
from .core.errors import LiterateError
from .core.ports import BlockExtractor
from .scheduler import ParseScheduler

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Container for all wired components."""
    engine: LiterateEngine
    storage: FsStorage
    scheduler: ParseScheduler
    config: LitConfig
    last_counts: dict[str, int] = field(default_factory=dict)

    def load_all(self) -> dict[str, int]:
        """Parse every document under the root; returns counts."""
        counts = {"documents": 0, "blocks": 0, "failed": 0}
        for doc_id in self.storage.list_document_ids():
            try:
                text = self.storage.read_text(doc_id)
            except LiterateError as e:
                logger.error("%s", e)
                counts["documents"] += 1
                counts["failed"] += 1
                continue
            if text is None:
                continue
            counts["documents"] += 1
            try:
                blocks = self.engine.parse_document(doc_id, text)
            except LiterateError as e:
                logger.error("%s", e)
                counts["failed"] += 1
                continue
            counts["blocks"] += len(blocks)
        self.last_counts = counts
        return counts


def build_extractor(config: ExtractorConfig) -> BlockExtractor:
    if config.kind == "fence":
        inner: BlockExtractor = FenceExtractor()
    else:
        inner = PandocExtractor(
            executable=config.pandoc,
            input_format=config.format,
            timeout=config.timeout,
        )
    return CachingExtractor(inner, maxsize=config.cache_size)


def build_runtime(
    root: Path | None = None,
    config_path: Path | None = None,
    extractor_kind: str | None = None,
) -> Runtime:
    """Build and wire all components for a document root."""
    config = load_config(config_path=config_path, root=root)

    # CLI args win over config values
    if root is not None:
        config.documents.root = root
    if extractor_kind is not None:
        config.extractor.kind = extractor_kind

    storage = FsStorage(config.documents.root, glob=config.documents.glob)
    engine = LiterateEngine(build_extractor(config.extractor), FenceLocationResolver())
    scheduler = ParseScheduler(engine)

    return Runtime(
        engine=engine,
        storage=storage,
        scheduler=scheduler,
        config=config,
    )
