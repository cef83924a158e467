"""Exception types for vcscan.

Every error raised while scanning is fatal for the whole run; the types only
tell the operator which stage failed.
"""

from pathlib import Path
from typing import Sequence


class VcscanError(Exception):
    """Base exception for vcscan errors."""

    pass


class ScanIOError(VcscanError):
    """A filesystem operation (stat, list, canonicalize) failed."""

    def __init__(self, path: Path, operation: str, cause: OSError | None = None):
        self.path = path
        self.operation = operation
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"{operation} failed for {path}{detail}")


class StatusExecutionError(VcscanError):
    """A status command could not be spawned, awaited or timed out."""

    def __init__(self, path: Path, command: Sequence[str], reason: str):
        self.path = path
        self.command = tuple(command)
        self.reason = reason
        super().__init__(f"exec failed for {path} ({' '.join(self.command)}): {reason}")


class CoordinationError(VcscanError):
    """A worker task terminated with an unexpected exception."""

    pass


class ConfigError(VcscanError):
    """Configuration file or value is invalid."""

    pass
