"""
Infrastructure Layer - subprocess execution of VCS status commands.
"""

from vcscan.infrastructure.status_runner import (
    StatusResult,
    StatusRunnerInterface,
    SubprocessStatusRunner,
)

__all__ = [
    "StatusResult",
    "StatusRunnerInterface",
    "SubprocessStatusRunner",
]
