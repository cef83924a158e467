"""
Result aggregation for completed status commands.

Two modes are selected once at start:
- OUTPUT: print each dirty result as it completes
- COUNT: count dirty results and print the total after a successful run
"""

import logging
import os
from enum import Enum
from typing import BinaryIO

from vcscan.infrastructure.status_runner import StatusResult

logger = logging.getLogger(__name__)


class AggregationMode(str, Enum):
    """How completed status results are reported."""

    OUTPUT = "output"
    COUNT = "count"


class DirtyCounter:
    """
    Count of results with non-empty output.

    Owned by the aggregator of one run and read once after the traversal
    has terminated. It is only touched from the event-loop thread.
    """

    def __init__(self) -> None:
        self._value = 0

    def increment(self) -> int:
        self._value += 1
        return self._value

    @property
    def value(self) -> int:
        return self._value


class ResultAggregator:
    """
    Consumes StatusResults in completion order.

    Output is written as bytes so that subprocess output, color escapes
    included, reaches the terminal unchanged.
    """

    def __init__(
        self,
        mode: AggregationMode,
        stream: BinaryIO,
        counter: DirtyCounter | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            mode: OUTPUT or COUNT
            stream: Binary stream receiving headers, raw output and the count
            counter: Counter to increment in COUNT mode (created if None)
        """
        self._mode = mode
        self._stream = stream
        self._counter = counter or DirtyCounter()
        self._finished = False

    @property
    def mode(self) -> AggregationMode:
        return self._mode

    @property
    def counter(self) -> DirtyCounter:
        return self._counter

    def consume(self, result: StatusResult) -> None:
        """Report one completed status result."""
        if not result.is_dirty:
            logger.debug(f"Clean: {result.path}")
            return

        if self._mode is AggregationMode.COUNT:
            self._counter.increment()
            return

        header = os.fsencode(result.path) + b" - " + result.vcs_name.encode("utf-8") + b"\n"
        self._stream.write(header)
        self._stream.write(result.stdout)
        self._stream.write(result.stderr)
        self._stream.flush()

    def finish(self) -> None:
        """
        Emit the final report. Only called after a run without fatal error.

        Raises:
            RuntimeError: If called twice
        """
        if self._finished:
            raise RuntimeError("ResultAggregator.finish() called twice")
        self._finished = True

        if self._mode is AggregationMode.COUNT:
            self._stream.write(f"{self._counter.value}\n".encode("ascii"))
            self._stream.flush()
