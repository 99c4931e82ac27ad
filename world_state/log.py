"""Logging helpers.

Every module logs through its own ``logging.getLogger(__name__)``; components
also accept an injected logger so callers can route them elsewhere.
configure_logging() is for entry points (the API app, the MCP server, the dev
launcher), never for library code.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a root stream handler once and set the level."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


@contextmanager
def timed(logger: logging.Logger, label: str) -> Iterator[None]:
    """Log how long the wrapped block took, at debug level."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s took %.1fms", label, (time.perf_counter() - start) * 1000)
