"""Configuration loader for litgraph.toml."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_NAME = "litgraph.toml"
EXTRACTOR_KINDS = ("pandoc", "fence")


@dataclass
class DocumentsConfig:
    """Where documents live."""
    root: Path
    glob: str = "**/*.md"


@dataclass
class ExtractorConfig:
    """How code blocks are extracted."""
    kind: str = "pandoc"
    pandoc: str = "pandoc"
    format: str = "markdown"
    timeout: float = 30.0
    cache_size: int = 64


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class WatchConfig:
    debounce_ms: int = 300


@dataclass
class LitConfig:
    """Complete litgraph configuration."""
    documents: DocumentsConfig
    extractor: ExtractorConfig
    logging: LoggingConfig
    watch: WatchConfig


def load_config(config_path: Path | None = None, root: Path | None = None) -> LitConfig:
    """
    Load configuration from litgraph.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/litgraph.toml
    3. root/litgraph.toml

    Args:
        config_path: Explicit path to config file
        root: Document root for fallback search

    Returns:
        LitConfig with resolved settings

    Raises:
        ValueError: if the extractor kind is unknown
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if root:
        search_paths.append(root / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    docs_data = toml_data.get("documents", {})
    documents = DocumentsConfig(
        root=Path(docs_data.get("root", root or Path("."))),
        glob=docs_data.get("glob", "**/*.md"),
    )

    ex_data = toml_data.get("extractor", {})
    extractor = ExtractorConfig(
        kind=ex_data.get("kind", "pandoc"),
        pandoc=ex_data.get("pandoc", "pandoc"),
        format=ex_data.get("format", "markdown"),
        timeout=float(ex_data.get("timeout", 30.0)),
        cache_size=int(ex_data.get("cache_size", 64)),
    )
    if extractor.kind not in EXTRACTOR_KINDS:
        raise ValueError(
            f"Unknown extractor kind {extractor.kind!r} (expected one of {', '.join(EXTRACTOR_KINDS)})"
        )

    log_data = toml_data.get("logging", {})
    logging_config = LoggingConfig(level=str(log_data.get("level", "WARNING")).upper())

    watch_data = toml_data.get("watch", {})
    watch = WatchConfig(debounce_ms=int(watch_data.get("debounce_ms", 300)))

    return LitConfig(
        documents=documents,
        extractor=extractor,
        logging=logging_config,
        watch=watch,
    )
