"""
End-to-end tests for ScanService with fake status commands.
"""

import asyncio
import io
import os
from pathlib import Path

import pytest

from tests.vcs_tree_utils import make_repo, output_headers, run_async, scan_with_fakes
from vcscan.core.config import ScanConfig
from vcscan.core.errors import CoordinationError, ScanIOError, StatusExecutionError
from vcscan.core.path_classifier import VCSDescriptor
from vcscan.infrastructure.fakes import FakeStatusRunner, RecordingPathClassifier
from vcscan.infrastructure.status_runner import StatusResult, StatusRunnerInterface
from vcscan.services import AggregationMode, ResultAggregator, ScanService

STRATEGIES = ["pool", "tree"]


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """
    root/
      a/.git        dirty
      a/sub/.git    nested, never visited
      b/.hg         clean
      c/d/.svn      dirty
    """
    make_repo(tmp_path / "a", ".git")
    make_repo(tmp_path / "a" / "sub", ".git")
    make_repo(tmp_path / "b", ".hg")
    make_repo(tmp_path / "c" / "d", ".svn")
    return tmp_path


def _workspace_outputs(root: Path) -> dict[Path, tuple[bytes, bytes]]:
    return {
        root / "a": (b" M file.txt\n", b""),
        root / "c" / "d": (b"M       42   c/d/x\n", b""),
        root / "a" / "sub": (b"?? never\n", b""),
    }


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_output_mode_reports_dirty_repositories(workspace: Path, strategy: str):
    outcome = scan_with_fakes([workspace], _workspace_outputs(workspace), strategy=strategy)

    root = workspace.resolve()
    assert output_headers(outcome.output) == {
        f"{root / 'a'} - git",
        f"{root / 'c' / 'd'} - subversion",
    }
    assert b"?? never" not in outcome.output
    assert sorted(outcome.runner.called_paths) == sorted([root / "a", root / "b", root / "c" / "d"])
    assert root / "a" / "sub" not in outcome.classifier.classified
    assert outcome.summary.repositories_found == 3
    assert outcome.summary.dirty_repositories == 2
    assert outcome.summary.strategy == strategy


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_count_mode(workspace: Path, strategy: str):
    outcome = scan_with_fakes(
        [workspace], _workspace_outputs(workspace), count=True, strategy=strategy
    )

    assert outcome.output == b"2\n"


def test_header_precedes_output_block(workspace: Path):
    outcome = scan_with_fakes([workspace], _workspace_outputs(workspace))

    header = os.fsencode(workspace.resolve() / "a") + b" - git\n"
    index = outcome.output.index(header)
    assert outcome.output[index + len(header):].startswith(b" M file.txt\n")


def test_stderr_bytes_follow_stdout(tmp_path: Path):
    make_repo(tmp_path / "r")
    outputs = {tmp_path / "r": (b"out\n", b"err\n")}

    outcome = scan_with_fakes([tmp_path], outputs)

    expected = os.fsencode(tmp_path.resolve() / "r") + b" - git\nout\nerr\n"
    assert outcome.output == expected


def test_overlapping_roots_are_both_scanned(workspace: Path):
    outcome = scan_with_fakes([workspace, workspace / "c"], _workspace_outputs(workspace), count=True)

    # c/d is reachable from both roots and is reported twice
    assert outcome.output == b"3\n"


def test_root_that_is_itself_a_repository(tmp_path: Path):
    make_repo(tmp_path / "only")
    make_repo(tmp_path / "only" / "nested")

    outcome = scan_with_fakes([tmp_path / "only"], {tmp_path / "only": (b"x\n", b"")})

    assert outcome.classifier.classified == [(tmp_path / "only").resolve()]
    assert outcome.output.startswith(os.fsencode((tmp_path / "only").resolve()) + b" - git\n")


def test_empty_tree(tmp_path: Path):
    outcome = scan_with_fakes([tmp_path], count=True)

    assert outcome.output == b"0\n"
    assert outcome.summary.directories_classified == 1


def test_default_root_is_current_directory(workspace: Path, monkeypatch):
    monkeypatch.chdir(workspace)

    outcome = scan_with_fakes([], _workspace_outputs(workspace), count=True)

    assert outcome.output == b"2\n"
    assert outcome.summary.roots == [workspace.resolve()]


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_missing_root_fails_before_output(tmp_path: Path, strategy: str):
    make_repo(tmp_path / "real")
    stream = io.BytesIO()
    runner = FakeStatusRunner()
    service = ScanService(
        aggregator=ResultAggregator(AggregationMode.COUNT, stream),
        config=ScanConfig(strategy=strategy, max_workers=2),
        status_runner=runner,
    )

    with pytest.raises(ScanIOError) as exc_info:
        run_async(service.scan([tmp_path / "real", tmp_path / "missing"]))

    assert exc_info.value.operation == "canonicalize"
    assert stream.getvalue() == b""
    assert runner.calls == []


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_unreadable_directory_is_fatal(workspace: Path, strategy: str):
    classifier = RecordingPathClassifier(failing_paths={workspace / "c"})

    with pytest.raises(ScanIOError):
        scan_with_fakes([workspace], count=True, strategy=strategy, classifier=classifier)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_status_failure_is_fatal_and_suppresses_count(workspace: Path, strategy: str):
    stream = io.BytesIO()
    runner = FakeStatusRunner(failing_paths={workspace / "b"})
    service = ScanService(
        aggregator=ResultAggregator(AggregationMode.COUNT, stream),
        config=ScanConfig(strategy=strategy, max_workers=2, status_workers=2),
        status_runner=runner,
    )

    with pytest.raises(StatusExecutionError):
        run_async(service.scan([workspace]))

    assert stream.getvalue() == b""


class _BrokenRunner(StatusRunnerInterface):
    async def run(self, path: Path, descriptor: VCSDescriptor) -> StatusResult:
        raise ZeroDivisionError("broken runner")


def test_unexpected_runner_exception_is_coordination_error(workspace: Path):
    service = ScanService(
        aggregator=ResultAggregator(AggregationMode.COUNT, io.BytesIO()),
        config=ScanConfig(max_workers=2),
        status_runner=_BrokenRunner(),
    )

    with pytest.raises(CoordinationError) as exc_info:
        run_async(service.scan([workspace]))

    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_minimal_resources_do_not_deadlock(tmp_path: Path, strategy: str):
    outputs = {}
    for i in range(40):
        repo = make_repo(tmp_path / f"g{i % 4}" / f"r{i}")
        outputs[repo] = (b"dirty\n", b"")

    outcome = scan_with_fakes(
        [tmp_path], outputs, count=True, strategy=strategy, max_workers=1, handoff_capacity=1
    )

    assert outcome.output == b"40\n"


def test_failure_with_full_handoff_does_not_deadlock(tmp_path: Path):
    for i in range(30):
        make_repo(tmp_path / f"r{i}")
    runner = FakeStatusRunner(failing_paths={tmp_path / "r0"}, delay=lambda path: 0.001)

    with pytest.raises(StatusExecutionError):
        scan_with_fakes([tmp_path], count=True, handoff_capacity=1, runner=runner)


def test_completion_order_does_not_affect_count(tmp_path: Path):
    outputs = {}
    for i in range(10):
        repo = make_repo(tmp_path / f"r{i}")
        outputs[repo] = (f"{i}\n".encode(), b"")
    runner = FakeStatusRunner(outputs=outputs, delay=lambda path: 0.01 * (int(path.name[1:]) % 3))

    outcome = scan_with_fakes([tmp_path], count=True, runner=runner)

    assert outcome.output == b"10\n"


def test_repeated_scans_are_idempotent(workspace: Path):
    first = scan_with_fakes([workspace], _workspace_outputs(workspace))
    second = scan_with_fakes([workspace], _workspace_outputs(workspace))

    assert output_headers(first.output) == output_headers(second.output)
    assert sorted(first.classifier.classified) == sorted(second.classifier.classified)


def test_symlinked_repository_followed_only_when_enabled(tmp_path: Path):
    make_repo(tmp_path / "elsewhere" / "repo")
    (tmp_path / "root").mkdir()
    (tmp_path / "root" / "link").symlink_to(tmp_path / "elsewhere")

    skipped = scan_with_fakes([tmp_path / "root"], count=True)
    followed = scan_with_fakes([tmp_path / "root"], count=True, follow_symlinks=True)

    assert skipped.summary.repositories_found == 0
    assert followed.summary.repositories_found == 1


class _ClosedPipe(io.BytesIO):
    """Binary stream behaving like stdout piped into a reader that exited."""

    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_output_write_failure_aborts_without_hanging(tmp_path: Path, strategy: str):
    outputs = {}
    for i in range(30):
        repo = make_repo(tmp_path / f"r{i:02d}")
        outputs[repo] = (b"dirty\n", b"")
    service = ScanService(
        aggregator=ResultAggregator(AggregationMode.OUTPUT, _ClosedPipe()),
        config=ScanConfig(
            strategy=strategy, max_workers=1, status_workers=1, handoff_capacity=2
        ),
        status_runner=FakeStatusRunner(outputs=outputs),
    )

    with pytest.raises(CoordinationError) as exc_info:
        await asyncio.wait_for(service.scan([tmp_path]), timeout=10.0)

    assert isinstance(exc_info.value.__cause__, BrokenPipeError)
