"""
Data models and the fixed VCS table for the path classifier.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class VCSDescriptor:
    """
    Static description of a version-control system.

    Attributes:
        name: Display name printed in result headers ('git', 'mercurial', ...)
        marker: Name of the entry whose presence marks a working-copy root
        command: Argument vector of the status command, run inside the root
    """

    name: str
    marker: str
    command: tuple[str, ...]


# Priority order matters: the first marker found wins.
VCS_DESCRIPTORS: tuple[VCSDescriptor, ...] = (
    VCSDescriptor(
        name="git",
        marker=".git",
        command=("git", "-c", "color.status=always", "status", "-s"),
    ),
    VCSDescriptor(
        name="mercurial",
        marker=".hg",
        command=("hg", "--config", "extensions.color=!", "st"),
    ),
    VCSDescriptor(
        name="subversion",
        marker=".svn",
        command=("svn", "st", "-v"),
    ),
)


@dataclass(frozen=True)
class ScanTask:
    """
    A directory waiting to be classified.

    Attributes:
        path: Directory as reached by the traversal (symlinks unresolved)
        real_path: Resolved location, tracked only when following symlinks
        lineage: Real paths of the directories leading to this one, tracked
                only when following symlinks
    """

    path: Path
    real_path: Path | None = None
    lineage: frozenset[Path] = frozenset()

    def child(self, path: Path, real_path: Path | None = None) -> "ScanTask":
        """Create the task for a subdirectory of this one."""
        if real_path is None:
            return ScanTask(path=path)
        return ScanTask(path=path, real_path=real_path, lineage=self.lineage | {real_path})


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of classifying one directory.

    ``descriptor`` is None when no marker was found (the directory is
    unclassified and must be expanded into its children).
    """

    path: Path
    descriptor: VCSDescriptor | None = None

    @property
    def matched(self) -> bool:
        return self.descriptor is not None

    @classmethod
    def unclassified(cls, path: Path) -> "ClassificationResult":
        return cls(path=path)
