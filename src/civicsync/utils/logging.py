"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Supabase keys travel in request headers and psycopg logs connection details.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "psycopg")


def configure_logging(level: str = "INFO", quiet: Iterable[str] = QUIET_LOGGERS) -> None:
    """Configure the root logger once and cap transport loggers at WARNING."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a civicsync logger; module names are used as-is."""
    return logging.getLogger(name)
