"""
Logging - Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; this only configures
the root handler once at startup (API lifespan or CLI).
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # uvicorn's access log duplicates LatencyMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
