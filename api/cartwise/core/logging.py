from __future__ import annotations

import logging
import sys

from .config import get_settings

# Driver loggers that flood DEBUG output with one line per price lookup
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def configure_logging() -> None:
    settings = get_settings()
    log_level = logging.DEBUG if settings.environment != "production" else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("cartwise").setLevel(log_level)


__all__ = ["configure_logging", "NOISY_LOGGERS"]
