"""Structured single-line logging for the CMA engine."""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Optional

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_ROOT_NAMESPACE = "cma_engine"
_MAX_LISTED_IDS = 10


def configure_logging(namespace: str = _ROOT_NAMESPACE) -> logging.Logger:
    """Return the engine logger, attaching a stream handler on first use.

    Records are printed as ``event key=value`` lines so they stay readable in a
    terminal and can still be parsed by a log aggregator.
    """

    logger = logging.getLogger(namespace)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.setLevel(_LOG_LEVEL)
    logger.propagate = False
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    base = configure_logging()
    if child:
        return base.getChild(child)
    return base


def kv(event: str, **fields: Any) -> str:
    """Render ``event`` followed by sorted ``key=value`` pairs."""

    parts = [event]
    for key in sorted(fields):
        value = fields[key]
        if isinstance(value, float):
            value = f"{value:.4g}"
        parts.append(f"{key}={value}")
    return " ".join(parts)


def id_list(ids: Iterable[str]) -> str:
    """Compact comma-joined id list for log lines, truncated after a few ids."""

    ordered = sorted(str(item) for item in ids)
    shown = ",".join(ordered[:_MAX_LISTED_IDS])
    if len(ordered) > _MAX_LISTED_IDS:
        shown += f",+{len(ordered) - _MAX_LISTED_IDS}"
    return shown or "-"
