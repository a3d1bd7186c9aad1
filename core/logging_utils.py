"""Lightweight logging helpers with UTC timestamps."""

from __future__ import annotations

import logging
import os
import time

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_HANDLER_NAME = "tickerbot-root-handler"
_JOB_NAMESPACE = "jobs"


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        # MODE=DEBUG forces debug output regardless of LOG_LEVEL
        if os.getenv("MODE", "").upper() == "DEBUG":
            return logging.DEBUG
        env_level = os.getenv("LOG_LEVEL", "INFO").upper()
        return getattr(logging, env_level, logging.INFO)
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Configure a single root handler if one has not been attached."""
    root = logging.getLogger()
    resolved_level = _resolve_level(level)

    has_handler = any(getattr(h, "name", "") == _HANDLER_NAME for h in root.handlers)
    if not has_handler:
        handler = logging.StreamHandler()
        handler.name = _HANDLER_NAME
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        formatter.converter = time.gmtime  # Force UTC timestamps
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(resolved_level)
    for handler in root.handlers:
        if getattr(handler, "name", "") == _HANDLER_NAME:
            handler.setLevel(resolved_level)

    # Quiet chatty transport loggers unless we are debugging ourselves
    debugging = resolved_level <= logging.DEBUG
    for name in ("urllib3", "websockets"):
        logging.getLogger(name).setLevel(logging.DEBUG if debugging else logging.WARNING)
    # apscheduler reports skipped runs at WARNING, keep INFO for job start/stop
    logging.getLogger("apscheduler").setLevel(logging.DEBUG if debugging else logging.INFO)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger configured with the shared format."""
    root = logging.getLogger()
    if not any(getattr(h, "name", "") == _HANDLER_NAME for h in root.handlers):
        setup_logging()
    return logging.getLogger(name)


def job_logger(job: str) -> logging.Logger:
    """Named child logger for one scheduled job (e.g. ``jobs.price_update``)."""
    return get_logger(f"{_JOB_NAMESPACE}.{job}")
