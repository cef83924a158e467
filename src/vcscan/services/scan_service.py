"""
Scan Service for vcscan.

Wires the traversal engine, the status stage and the result aggregator for
one run:

    roots -> WorkQueue -> traversal workers -> status stage -> aggregator

Any fatal error from any stage is recorded by a shared ErrorPropagator; the
run stops creating new work, waits for dispatched work to finish, and
re-raises the first error.
"""

import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from vcscan.core.config import ScanConfig
from vcscan.core.path_classifier import (
    PathClassifier,
    PathClassifierInterface,
    ScanTask,
    resolve_root,
)
from vcscan.infrastructure.status_runner import StatusRunnerInterface, SubprocessStatusRunner
from vcscan.services.error_propagator import ErrorPropagator
from vcscan.services.result_aggregator import AggregationMode, ResultAggregator
from vcscan.services.status_stage import StatusStage
from vcscan.services.traversal_engine import (
    RecursiveTraversal,
    TraversalEngine,
    WorkerPoolTraversal,
)

logger = logging.getLogger(__name__)


@dataclass
class ScanSummary:
    """Result of a completed scan."""

    roots: list[Path] = field(default_factory=list)
    directories_classified: int = 0
    repositories_found: int = 0
    dirty_repositories: int = 0
    duration_seconds: float = 0.0
    strategy: str = "pool"


class ScanService:
    """
    Service for scanning directory trees for dirty working copies.

    One instance can run several scans; each run gets its own queue, error
    signal and status stage.
    """

    def __init__(
        self,
        aggregator: ResultAggregator,
        config: Optional[ScanConfig] = None,
        classifier: Optional[PathClassifierInterface] = None,
        status_runner: Optional[StatusRunnerInterface] = None,
    ):
        """
        Initialize the scan service.

        Args:
            aggregator: Receives status results (output or count mode)
            config: Scan configuration (default: ScanConfig())
            classifier: Path classifier (default: PathClassifier honoring
                       config.follow_symlinks)
            status_runner: Status runner (default: SubprocessStatusRunner
                          with config.status_timeout)
        """
        self._config = config or ScanConfig()
        self._aggregator = aggregator
        self._classifier = classifier or PathClassifier(
            follow_symlinks=self._config.follow_symlinks
        )
        self._status_runner = status_runner or SubprocessStatusRunner(
            timeout=self._config.status_timeout
        )

    def _resolve_roots(self, roots: Sequence[Path]) -> list[ScanTask]:
        if not roots:
            roots = [Path(".")]
        return [resolve_root(root, self._config.follow_symlinks) for root in roots]

    def _create_engine(self, stage: StatusStage, errors: ErrorPropagator) -> TraversalEngine:
        if self._config.strategy == "tree":
            return RecursiveTraversal(self._classifier, stage.submit, errors)
        return WorkerPoolTraversal(
            self._classifier,
            stage.submit,
            errors,
            max_workers=self._config.resolved_max_workers(),
        )

    async def scan(self, roots: Sequence[Path]) -> ScanSummary:
        """
        Scan the given roots and report through the aggregator.

        Args:
            roots: Root directories; an empty sequence means the current directory

        Returns:
            ScanSummary for the completed run

        Raises:
            VcscanError: The first fatal error of the run
        """
        start_time = time.monotonic()
        tasks = self._resolve_roots(roots)

        errors = ErrorPropagator()
        stage = StatusStage(
            runner=self._status_runner,
            aggregator=self._aggregator,
            errors=errors,
            workers=self._config.resolved_status_workers(),
            capacity=self._config.handoff_capacity,
        )
        engine = self._create_engine(stage, errors)

        logger.info(
            f"Scanning {len(tasks)} root(s) with strategy={self._config.strategy}, "
            f"workers={self._config.resolved_max_workers()}"
        )

        stage.start()
        try:
            stats = await engine.run(tasks)
        finally:
            await stage.close()

        errors.raise_if_failed()
        self._aggregator.finish()

        summary = ScanSummary(
            roots=[task.path for task in tasks],
            directories_classified=stats.directories_classified,
            repositories_found=stats.repositories_found,
            dirty_repositories=stage.dirty_repositories,
            duration_seconds=time.monotonic() - start_time,
            strategy=self._config.strategy,
        )
        logger.info(
            f"Scan complete: {summary.directories_classified} directories, "
            f"{summary.repositories_found} repositories, "
            f"{summary.dirty_repositories} dirty in {summary.duration_seconds:.2f}s"
        )
        return summary


def run_scan(
    roots: Sequence[Path],
    config: Optional[ScanConfig] = None,
    count: bool = False,
    stream: Optional[BinaryIO] = None,
) -> ScanSummary:
    """
    Synchronous entry point: run one scan on a fresh event loop.

    Args:
        roots: Root directories (empty means the current directory)
        config: Scan configuration
        count: Print the number of dirty repositories instead of their output
        stream: Binary output stream (default: stdout)

    Returns:
        ScanSummary of the run

    Raises:
        VcscanError: The first fatal error of the run
    """
    aggregator = ResultAggregator(
        AggregationMode.COUNT if count else AggregationMode.OUTPUT,
        stream if stream is not None else sys.stdout.buffer,
    )
    service = ScanService(aggregator=aggregator, config=config)
    return asyncio.run(service.scan(roots))
