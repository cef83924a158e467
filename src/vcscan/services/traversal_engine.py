"""
Traversal engines: walk the roots, classify directories, dispatch matches.

Two strategies are provided:

- WorkerPoolTraversal: a fixed pool of workers sharing a WorkQueue. Bounded
  resource use; completion is detected with the queue's in-flight protocol.
- RecursiveTraversal: one task per directory, each awaiting its children.
  Completion is structural, but the number of live tasks (and open
  directory handles) grows with the width of the tree, so it is only
  suitable for small trees.

Both treat a matched directory as a leaf and stop creating work as soon as
the shared ErrorPropagator records a failure.
"""

import asyncio
import contextvars
import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from vcscan.core.errors import CoordinationError, VcscanError
from vcscan.core.logging_setup import set_worker_context
from vcscan.core.path_classifier import (
    ClassificationResult,
    PathClassifierInterface,
    ScanTask,
)
from vcscan.services.error_propagator import ErrorPropagator
from vcscan.services.work_queue import WorkQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")

Dispatch = Callable[[ClassificationResult], Awaitable[None]]


@dataclass
class TraversalStats:
    """Counters for one traversal."""

    directories_classified: int = 0
    repositories_found: int = 0


class TraversalEngine(ABC):
    """Shared plumbing for traversal strategies."""

    def __init__(
        self,
        classifier: PathClassifierInterface,
        dispatch: Dispatch,
        errors: ErrorPropagator,
    ):
        """
        Args:
            classifier: Classifies and expands directories (blocking calls,
                       run in the default executor)
            dispatch: Coroutine receiving every matched directory
            errors: Shared first-error signal
        """
        self._classifier = classifier
        self._dispatch = dispatch
        self._errors = errors
        self.stats = TraversalStats()

    @abstractmethod
    async def run(self, roots: Sequence[ScanTask]) -> TraversalStats:
        """Traverse every root; returns when traversal is complete or aborted."""
        raise NotImplementedError

    async def _run_blocking(self, func: Callable[..., T], *args: Any) -> T:
        # Executor threads do not inherit the task's context; copy it so log
        # records keep their worker tag.
        loop = asyncio.get_running_loop()
        context = contextvars.copy_context()
        return await loop.run_in_executor(None, functools.partial(context.run, func, *args))

    async def _classify(self, task: ScanTask) -> ClassificationResult:
        result = await self._run_blocking(self._classifier.classify, task.path)
        self.stats.directories_classified += 1
        return result

    async def _handle_match(self, result: ClassificationResult) -> None:
        self.stats.repositories_found += 1
        await self._dispatch(result)

    async def _record_unexpected(self, where: str, error: Exception) -> None:
        wrapped = CoordinationError(f"{where} terminated abnormally: {error}")
        wrapped.__cause__ = error
        await self._errors.fail(wrapped)


class WorkerPoolTraversal(TraversalEngine):
    """
    Fixed-size worker pool over a shared WorkQueue.

    Each worker loops: get a task, classify it, then either dispatch the
    match or commit the subdirectories to the queue, and finally report the
    task as done. Termination is decided by the queue, not by a worker.
    """

    def __init__(
        self,
        classifier: PathClassifierInterface,
        dispatch: Dispatch,
        errors: ErrorPropagator,
        max_workers: int,
        queue: WorkQueue | None = None,
    ):
        super().__init__(classifier, dispatch, errors)
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers
        self._queue = queue or WorkQueue()
        errors.add_listener(self._queue.close)

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    async def run(self, roots: Sequence[ScanTask]) -> TraversalStats:
        await self._queue.put_many(roots)

        workers = [
            asyncio.create_task(self._worker(f"W{index + 1:02d}"), name=f"W{index + 1:02d}")
            for index in range(self._max_workers)
        ]
        logger.debug(f"Started {len(workers)} traversal workers")

        results = await asyncio.gather(*workers, return_exceptions=True)
        for worker, outcome in zip(workers, results):
            if isinstance(outcome, Exception):
                await self._record_unexpected(f"traversal worker {worker.get_name()}", outcome)

        return self.stats

    async def _worker(self, worker_id: str) -> None:
        set_worker_context(worker_id)
        while True:
            task = await self._queue.get()
            if task is None:
                return
            try:
                await self._resolve(task)
            except VcscanError as e:
                await self._errors.fail(e)
            except Exception as e:
                await self._record_unexpected(f"traversal worker {worker_id} on {task.path}", e)
            finally:
                await self._queue.task_done()

    async def _resolve(self, task: ScanTask) -> None:
        result = await self._classify(task)
        if self._errors.aborted:
            return

        if result.matched:
            await self._handle_match(result)
            return

        children = await self._run_blocking(self._classifier.expand, task)
        await self._queue.put_many(children)


class RecursiveTraversal(TraversalEngine):
    """
    One asyncio task per directory; each node awaits the join of its children.
    """

    async def run(self, roots: Sequence[ScanTask]) -> TraversalStats:
        set_worker_context("T00")
        await asyncio.gather(*(self._visit(root) for root in roots))
        return self.stats

    async def _visit(self, task: ScanTask) -> None:
        if self._errors.aborted:
            return

        try:
            result = await self._classify(task)
            if self._errors.aborted:
                return
            if result.matched:
                await self._handle_match(result)
                return
            children = await self._run_blocking(self._classifier.expand, task)
        except VcscanError as e:
            await self._errors.fail(e)
            return
        except Exception as e:
            await self._record_unexpected(f"traversal of {task.path}", e)
            return

        if children and not self._errors.aborted:
            await asyncio.gather(*(asyncio.create_task(self._visit(child)) for child in children))
