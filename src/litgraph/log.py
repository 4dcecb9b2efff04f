from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def setup_logging(level: str | None = None, default: str = "WARNING") -> None:
    """Configure console logging on stderr.

    Uses standard `logging` + RichHandler. Safe to call multiple times.

    Level resolution (first match wins):
      1) argument `level`
      2) env var `LITGRAPH_LOG_LEVEL`
      3) `default` (usually the config file's value)
    """

    if level is None:
        level = os.environ.get("LITGRAPH_LOG_LEVEL", default)

    level = str(level).upper().strip()
    if level not in LEVELS:
        level = "WARNING"

    # Avoid duplicated handlers on re-init.
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%H:%M:%S]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_path=False,
                show_time=True,
            )
        ],
    )
