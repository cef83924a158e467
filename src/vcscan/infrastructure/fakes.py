"""
Fake implementations for testing.

Provides in-process implementations of the classifier and status runner
interfaces so traversal can be tested without real VCS binaries.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from pathlib import Path

from vcscan.core.errors import ScanIOError, StatusExecutionError
from vcscan.core.path_classifier import (
    ClassificationResult,
    PathClassifier,
    PathClassifierInterface,
    ScanTask,
    VCSDescriptor,
)
from vcscan.infrastructure.status_runner import StatusResult, StatusRunnerInterface


class FakeStatusRunner(StatusRunnerInterface):
    """
    Status runner returning canned output.

    Output is looked up by resolved path; unknown paths produce empty
    (clean) output. Every call is recorded.
    """

    def __init__(
        self,
        outputs: dict[Path, tuple[bytes, bytes]] | None = None,
        failing_paths: set[Path] | None = None,
        delay: Callable[[Path], float] | None = None,
    ):
        """
        Initialize fake runner.

        Args:
            outputs: Map of path -> (stdout, stderr)
            failing_paths: Paths for which the run raises StatusExecutionError
            delay: Optional per-path delay in seconds, to vary completion order
        """
        self._outputs = {Path(p).resolve(): out for p, out in (outputs or {}).items()}
        self._failing = {Path(p).resolve() for p in (failing_paths or set())}
        self._delay = delay
        self.calls: list[tuple[Path, str]] = []

    async def run(self, path: Path, descriptor: VCSDescriptor) -> StatusResult:
        self.calls.append((path, descriptor.name))
        if self._delay is not None:
            await asyncio.sleep(self._delay(path))
        if path.resolve() in self._failing:
            raise StatusExecutionError(path, descriptor.command, "spawn failed: fake failure")
        stdout, stderr = self._outputs.get(path.resolve(), (b"", b""))
        return StatusResult(
            path=path, vcs_name=descriptor.name, stdout=stdout, stderr=stderr, returncode=0
        )

    @property
    def called_paths(self) -> list[Path]:
        return [path for path, _ in self.calls]


class RecordingPathClassifier(PathClassifierInterface):
    """
    Wraps a real PathClassifier and records every call.

    Calls arrive from executor threads, so the records are lock-protected.
    """

    def __init__(
        self,
        inner: PathClassifier | None = None,
        failing_paths: set[Path] | None = None,
    ):
        self._inner = inner or PathClassifier()
        self._failing = {Path(p).resolve() for p in (failing_paths or set())}
        self._lock = threading.Lock()
        self.classified: list[Path] = []
        self.expanded: list[Path] = []

    def classify(self, path: Path) -> ClassificationResult:
        with self._lock:
            self.classified.append(path)
        if path.resolve() in self._failing:
            raise ScanIOError(path, "stat", PermissionError(13, "Permission denied"))
        return self._inner.classify(path)

    def expand(self, task: ScanTask) -> list[ScanTask]:
        with self._lock:
            self.expanded.append(task.path)
        return self._inner.expand(task)
