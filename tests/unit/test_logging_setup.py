"""
Tests for worker-tagged logging.
"""

import asyncio
import contextvars
import io
import logging

import pytest

from vcscan.core.config import LoggingConfig
from vcscan.core.logging_setup import (
    WorkerContextFilter,
    configure_logging,
    set_worker_context,
)


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("vcscan.test", logging.INFO, __file__, 1, message, None, None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_filter_without_worker():
    set_worker_context(None)
    record = _record()

    assert WorkerContextFilter().filter(record) is True
    assert record.worker_id is None
    assert record.worker_tag == ""


def test_worker_tag_stays_in_its_context():
    set_worker_context(None)

    def tagged() -> str:
        set_worker_context("W02")
        record = _record()
        WorkerContextFilter().filter(record)
        return record.worker_tag

    assert contextvars.copy_context().run(tagged) == "[W02] "

    record = _record()
    WorkerContextFilter().filter(record)
    assert record.worker_tag == ""


def test_tasks_keep_separate_tags():
    async def tag_of(worker_id: str) -> str:
        set_worker_context(worker_id)
        await asyncio.sleep(0)
        record = _record()
        WorkerContextFilter().filter(record)
        return record.worker_tag

    async def main():
        return await asyncio.gather(*(asyncio.create_task(tag_of(f"W{i:02d}")) for i in (1, 2, 3)))

    assert asyncio.run(main()) == ["[W01] ", "[W02] ", "[W03] "]


def test_configure_logging_replaces_its_handler(restore_root_logger, monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr("sys.stderr", stream)
    config = LoggingConfig(level="INFO", format="%(worker_tag)s%(levelname)s %(message)s")

    configure_logging(config)
    configure_logging(config)

    ours = [h for h in restore_root_logger.handlers if h.get_name() == "vcscan-stderr"]
    assert len(ours) == 1
    assert restore_root_logger.level == logging.INFO

    def emit() -> None:
        set_worker_context("S01")
        logging.getLogger("vcscan.test").info("spawned")

    contextvars.copy_context().run(emit)
    assert stream.getvalue() == "[S01] INFO spawned\n"


def test_verbose_forces_debug(restore_root_logger, monkeypatch):
    monkeypatch.setattr("sys.stderr", io.StringIO())

    configure_logging(LoggingConfig(level="ERROR"), verbose=True)

    assert restore_root_logger.level == logging.DEBUG
