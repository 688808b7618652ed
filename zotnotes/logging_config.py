"""Logging setup shared by the CLI and the HTTP server."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Chatty third-party loggers kept at WARNING unless verbose output is requested.
NOISY_LOGGERS = ("peewee", "uvicorn.access")


def configure_logging(level: int = logging.WARNING, verbose: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Logging level used when ``verbose`` is off.
        verbose: Switch to DEBUG and let third-party loggers through.
    """

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


__all__ = ["configure_logging"]
