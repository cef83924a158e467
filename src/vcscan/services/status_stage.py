"""
Status stage: runs status commands for matched directories.

Traversal workers hand matches over a bounded queue, so a burst of matches
applies back-pressure to the traversal instead of spawning an unbounded
number of subprocesses. A fixed pool of consumer tasks runs the commands and
feeds the aggregator in completion order.
"""

import asyncio
import logging

from vcscan.core.errors import CoordinationError, VcscanError
from vcscan.core.logging_setup import set_worker_context
from vcscan.core.path_classifier import ClassificationResult
from vcscan.infrastructure.status_runner import StatusRunnerInterface
from vcscan.services.error_propagator import ErrorPropagator
from vcscan.services.result_aggregator import ResultAggregator

logger = logging.getLogger(__name__)


class StatusStage:
    """Bounded handoff plus a pool of status runner tasks."""

    def __init__(
        self,
        runner: StatusRunnerInterface,
        aggregator: ResultAggregator,
        errors: ErrorPropagator,
        workers: int = 1,
        capacity: int = 8,
    ):
        """
        Initialize the stage.

        Args:
            runner: Runs one status command
            aggregator: Receives every completed StatusResult
            errors: Shared first-error signal
            workers: Number of concurrent status commands
            capacity: Maximum number of matches waiting in the handoff
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._runner = runner
        self._aggregator = aggregator
        self._errors = errors
        self._workers = workers
        self._handoff: asyncio.Queue[ClassificationResult | None] = asyncio.Queue(maxsize=capacity)
        self._tasks: list[asyncio.Task[None]] = []
        self.dirty_repositories = 0

    def start(self) -> None:
        """Start the consumer tasks."""
        if self._tasks:
            raise RuntimeError("StatusStage already started")
        for index in range(self._workers):
            worker_id = f"S{index + 1:02d}"
            self._tasks.append(asyncio.create_task(self._consume(worker_id), name=worker_id))

    async def submit(self, match: ClassificationResult) -> None:
        """Hand a matched directory to the stage, waiting while the handoff is full."""
        if self._errors.aborted:
            return
        await self._handoff.put(match)

    async def close(self) -> None:
        """
        Signal end of input and wait for every consumer to finish.

        Results already handed over are still run unless the scan was
        aborted, in which case they are drained without spawning.
        """
        for _ in self._tasks:
            if all(task.done() for task in self._tasks):
                # Nobody left to take a sentinel from a full handoff
                break
            await self._handoff.put(None)

        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for worker_id, outcome in zip((t.get_name() for t in self._tasks), results):
            if isinstance(outcome, Exception):
                error = CoordinationError(f"status worker {worker_id} terminated abnormally: {outcome}")
                error.__cause__ = outcome
                await self._errors.fail(error)

    async def _consume(self, worker_id: str) -> None:
        set_worker_context(worker_id)
        while True:
            match = await self._handoff.get()
            if match is None:
                return
            if self._errors.aborted:
                # Keep draining so traversal workers never block on a full handoff
                logger.debug(f"Skipping {match.path} after abort")
                continue
            try:
                await self._run_one(match)
            except VcscanError as e:
                await self._errors.fail(e)
            except Exception as e:
                error = CoordinationError(f"status worker {worker_id} failed on {match.path}: {e}")
                error.__cause__ = e
                await self._errors.fail(error)

    async def _run_one(self, match: ClassificationResult) -> None:
        assert match.descriptor is not None
        result = await self._runner.run(match.path, match.descriptor)
        if result.is_dirty:
            self.dirty_repositories += 1
        self._aggregator.consume(result)
