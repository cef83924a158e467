import io
from pathlib import Path

import pytest

from vcscan.infrastructure.status_runner import StatusResult
from vcscan.services.result_aggregator import AggregationMode, DirtyCounter, ResultAggregator


def _result(path: str, stdout: bytes = b"", stderr: bytes = b"", name: str = "git") -> StatusResult:
    return StatusResult(path=Path(path), vcs_name=name, stdout=stdout, stderr=stderr)


class TestOutputMode:
    def test_dirty_result_is_printed_byte_exact(self):
        stream = io.BytesIO()
        aggregator = ResultAggregator(AggregationMode.OUTPUT, stream)

        aggregator.consume(_result("/a", stdout=b"\x1b[31m M\x1b[m file\n", stderr=b"warning\n"))

        assert stream.getvalue() == b"/a - git\n\x1b[31m M\x1b[m file\nwarning\n"

    def test_stderr_only_counts_as_dirty(self):
        stream = io.BytesIO()
        aggregator = ResultAggregator(AggregationMode.OUTPUT, stream)

        aggregator.consume(_result("/b", stderr=b"abort: no repository\n", name="mercurial"))

        assert stream.getvalue() == b"/b - mercurial\nabort: no repository\n"

    def test_clean_result_prints_nothing(self):
        stream = io.BytesIO()
        aggregator = ResultAggregator(AggregationMode.OUTPUT, stream)

        aggregator.consume(_result("/clean"))
        aggregator.finish()

        assert stream.getvalue() == b""

    def test_results_keep_arrival_order(self):
        stream = io.BytesIO()
        aggregator = ResultAggregator(AggregationMode.OUTPUT, stream)

        aggregator.consume(_result("/z", stdout=b"1\n"))
        aggregator.consume(_result("/a", stdout=b"2\n"))

        assert stream.getvalue() == b"/z - git\n1\n/a - git\n2\n"


class TestCountMode:
    def test_counts_dirty_results_silently(self):
        stream = io.BytesIO()
        counter = DirtyCounter()
        aggregator = ResultAggregator(AggregationMode.COUNT, stream, counter)

        aggregator.consume(_result("/a", stdout=b"x"))
        aggregator.consume(_result("/b"))
        aggregator.consume(_result("/c", stderr=b"y"))

        assert stream.getvalue() == b""
        assert counter.value == 2

        aggregator.finish()

        assert stream.getvalue() == b"2\n"

    def test_zero_is_printed(self):
        stream = io.BytesIO()
        aggregator = ResultAggregator(AggregationMode.COUNT, stream)

        aggregator.finish()

        assert stream.getvalue() == b"0\n"

    def test_finish_twice_raises(self):
        aggregator = ResultAggregator(AggregationMode.COUNT, io.BytesIO())
        aggregator.finish()

        with pytest.raises(RuntimeError):
            aggregator.finish()
