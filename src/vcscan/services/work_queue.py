"""
Work queue with in-flight tracking for dynamic traversal.

The total number of directories is unknown up front, so completion cannot
be detected by counting down a known total. Instead the queue tracks how
many dequeued tasks are still being resolved; the scan is complete when no
task is in flight and nothing is pending, observed together under the same
condition that guards every enqueue and dequeue.
"""

import asyncio
import logging
from collections import deque
from typing import Iterable

from vcscan.core.path_classifier import ScanTask

logger = logging.getLogger(__name__)


class WorkQueue:
    """
    Pending ScanTasks shared by all traversal workers.

    Protocol for a worker:
        task = await queue.get()      # None means: stop
        ... classify, dispatch or expand via put_many() ...
        await queue.task_done()       # after all children are committed

    ``get()`` counts the task as in flight; ``task_done()`` decrements and
    performs the completion check in one critical section. Checking the
    pending deque before decrementing, or the counter without the deque,
    would miss children a sibling worker is about to commit.
    """

    def __init__(self, tasks: Iterable[ScanTask] = ()):
        self._pending: deque[ScanTask] = deque(tasks)
        self._in_flight = 0
        self._condition = asyncio.Condition()
        self._completed = False
        self._closed = False
        self._total_enqueued = len(self._pending)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def completed(self) -> bool:
        """True once every task has been resolved without the queue being closed."""
        return self._completed

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def total_enqueued(self) -> int:
        return self._total_enqueued

    async def put(self, task: ScanTask) -> bool:
        """Enqueue one task. Returns False if the queue was closed."""
        return await self.put_many([task])

    async def put_many(self, tasks: Iterable[ScanTask]) -> bool:
        """
        Commit a batch of tasks at once.

        Returns:
            False if the queue was closed and the tasks were discarded
        """
        batch = list(tasks)
        async with self._condition:
            if self._closed:
                return False
            if self._completed:
                raise RuntimeError("put() on a completed WorkQueue")
            self._pending.extend(batch)
            self._total_enqueued += len(batch)
            self._condition.notify(len(batch))
        return True

    async def get(self) -> ScanTask | None:
        """
        Dequeue the next task, waiting while other workers are in flight.

        Returns:
            The next ScanTask, or None when the scan is complete or the
            queue was closed
        """
        async with self._condition:
            while True:
                if self._closed or self._completed:
                    return None
                if self._pending:
                    self._in_flight += 1
                    return self._pending.popleft()
                if self._in_flight == 0:
                    # Nothing pending and nobody left to produce more
                    self._mark_complete()
                    return None
                await self._condition.wait()

    async def task_done(self) -> None:
        """
        Mark a dequeued task as fully resolved.

        Raises:
            ValueError: If called more times than tasks were dequeued
        """
        async with self._condition:
            if self._in_flight <= 0:
                raise ValueError("task_done() called too many times")
            self._in_flight -= 1
            if self._in_flight == 0 and not self._pending:
                self._mark_complete()

    async def close(self) -> None:
        """Stop handing out work; wakes every waiting worker."""
        async with self._condition:
            if self._closed:
                return
            self._closed = True
            if self._pending:
                logger.debug(f"Discarding {len(self._pending)} pending tasks on close")
            self._condition.notify_all()

    def _mark_complete(self) -> None:
        # Caller holds the condition
        if self._completed:
            return
        self._completed = True
        logger.debug(f"Work queue complete after {self._total_enqueued} tasks")
        self._condition.notify_all()
