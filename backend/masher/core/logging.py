"""Logging setup shared by the server entrypoint and runtime startup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger, idempotently."""
    package_logger = logging.getLogger("masher")
    package_logger.setLevel(level)
    if not any(getattr(handler, "_masher_handler", False) for handler in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._masher_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    return package_logger
