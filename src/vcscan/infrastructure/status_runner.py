"""
Status runner for vcscan.

Runs a VCS status command inside a working-copy root and captures its output
fully into memory. The exit code is recorded but never interpreted: only the
presence of output makes a repository dirty.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from vcscan.core.errors import StatusExecutionError
from vcscan.core.path_classifier import VCSDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusResult:
    """
    Captured output of one status command.

    Attributes:
        path: Working-copy root the command ran in
        vcs_name: Name of the matched VCS
        stdout: Raw stdout bytes, including any color escapes
        stderr: Raw stderr bytes
        returncode: Exit status of the command (informational only)
    """

    path: Path
    vcs_name: str
    stdout: bytes
    stderr: bytes
    returncode: int | None = None

    @property
    def is_dirty(self) -> bool:
        return len(self.stdout) + len(self.stderr) > 0


class StatusRunnerInterface(ABC):
    """Abstract interface for running a status command."""

    @abstractmethod
    async def run(self, path: Path, descriptor: VCSDescriptor) -> StatusResult:
        """
        Run the descriptor's status command with ``path`` as working directory.

        Args:
            path: Working-copy root
            descriptor: Matched VCS

        Returns:
            StatusResult with the complete captured output

        Raises:
            StatusExecutionError: If the command cannot be spawned or awaited
        """
        raise NotImplementedError


class SubprocessStatusRunner(StatusRunnerInterface):
    """
    StatusRunner backed by asyncio subprocesses.

    No output size cap is applied; status output is bounded by repository
    size in practice.
    """

    def __init__(self, timeout: float | None = None):
        """
        Initialize the runner.

        Args:
            timeout: Seconds to wait for a command before killing it and
                    failing the run. None waits indefinitely.
        """
        self._timeout = timeout

    async def run(self, path: Path, descriptor: VCSDescriptor) -> StatusResult:
        command = descriptor.command
        logger.debug(
            "Executing command: %s",
            " ".join(command),
            extra={"command": command[0], "cwd": str(path)},
        )
        start_time = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise StatusExecutionError(path, command, f"spawn failed: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            try:
                process.kill()
            except ProcessLookupError:
                # Exited between the timeout and the kill
                pass
            await process.wait()
            raise StatusExecutionError(
                path, command, f"timed out after {self._timeout}s"
            ) from e
        except OSError as e:
            raise StatusExecutionError(path, command, f"wait failed: {e}") from e

        logger.debug(
            "Command completed",
            extra={
                "command": command[0],
                "elapsed_seconds": round(time.monotonic() - start_time, 3),
                "returncode": process.returncode,
            },
        )

        return StatusResult(
            path=path,
            vcs_name=descriptor.name,
            stdout=stdout or b"",
            stderr=stderr or b"",
            returncode=process.returncode,
        )
