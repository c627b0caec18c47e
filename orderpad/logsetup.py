"""Logging setup for the terminal client."""

from __future__ import annotations

import logging
from pathlib import Path

from textual.logging import TextualHandler

from orderpad.config import DEBUG_LOG_PATH

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: int = logging.INFO, log_path: str | Path | None = DEBUG_LOG_PATH) -> None:
    """Send records to the debug log file and the Textual devtools console."""
    handlers: list[logging.Handler] = [TextualHandler()]
    if log_path:
        path = Path(log_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
        except OSError:
            # The debug trace must never stop the app from starting.
            file_handler = None
        if file_handler is not None:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)
