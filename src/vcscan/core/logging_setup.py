"""Logging setup and worker context for vcscan.

Log records always go to stderr so stdout stays byte-exact. Records emitted
inside a worker task carry a compact ``[W01] `` tag, propagated with
contextvars (each asyncio task runs in its own context copy).
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vcscan.core.config import LoggingConfig

_worker_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker_id", default=None
)

_HANDLER_NAME = "vcscan-stderr"


def set_worker_context(worker_id: str | None) -> None:
    """Set the worker identifier for the current context."""
    _worker_id.set(worker_id)


class WorkerContextFilter(logging.Filter):
    """Logging filter that injects worker_id and worker_tag into records."""

    def filter(self, record: logging.LogRecord) -> bool:
        worker_id = _worker_id.get()
        record.worker_id = worker_id
        record.worker_tag = f"[{worker_id}] " if worker_id else ""
        return True  # Never filter out records


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Install the stderr handler on the root logger.

    Calling this again replaces the handler installed by a previous call.

    Args:
        config: Logging level and format.
        verbose: Force DEBUG level.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(config.format))
    handler.addFilter(WorkerContextFilter())

    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else config.level)
