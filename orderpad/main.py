"""Entry point for the orderpad Textual app."""

from __future__ import annotations

import logging
import sys

from orderpad.config import load_backend_settings
from orderpad.errors import ConfigError
from orderpad.logsetup import configure_logging
from orderpad.orderpad_app import OrderpadApp

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    try:
        settings = load_backend_settings()
    except ConfigError as exc:
        logger.error("startup_failed error=%s", exc.message)
        print(f"orderpad: {exc.message}", file=sys.stderr)
        raise SystemExit(2) from exc

    OrderpadApp(settings).run()


if __name__ == "__main__":
    main()
