"""
First-error-wins termination signal shared by every stage of a scan.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class ErrorPropagator:
    """
    Records the first fatal error of a run and notifies listeners once.

    Cancellation is cooperative: listeners stop the creation of new work
    (closing the work queue, for example), while work already dispatched is
    allowed to finish.
    """

    def __init__(self) -> None:
        self._error: BaseException | None = None
        self._aborted = asyncio.Event()
        self._listeners: list[Callable[[], Awaitable[None]]] = []

    @property
    def aborted(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> BaseException | None:
        return self._error

    def add_listener(self, listener: Callable[[], Awaitable[None]]) -> None:
        """Register a coroutine function awaited when the first error arrives."""
        self._listeners.append(listener)

    async def fail(self, error: BaseException) -> bool:
        """
        Record a fatal error.

        Returns:
            True if this was the first error; later errors are dropped
        """
        if self._error is not None:
            logger.debug(f"Dropping subsequent error: {error}")
            return False

        self._error = error
        self._aborted.set()
        logger.debug(f"Aborting scan: {error}")
        for listener in self._listeners:
            await listener()
        return True

    async def wait(self) -> BaseException:
        """Wait until an error is recorded and return it."""
        await self._aborted.wait()
        assert self._error is not None
        return self._error

    def raise_if_failed(self) -> None:
        """Re-raise the recorded error, if any."""
        if self._error is not None:
            raise self._error
