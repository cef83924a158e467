"""
PathClassifier implementation: marker detection and directory expansion.
"""

import logging
import os
import stat
from pathlib import Path
from typing import Sequence

from vcscan.core.errors import ScanIOError
from vcscan.core.symlink_validator import SymlinkValidator

from .interfaces import PathClassifierInterface
from .models import VCS_DESCRIPTORS, ClassificationResult, ScanTask, VCSDescriptor

logger = logging.getLogger(__name__)


def resolve_root(root: Path, follow_symlinks: bool = False) -> ScanTask:
    """
    Canonicalize a root argument into the first ScanTask of its tree.

    Args:
        root: Path given on the command line
        follow_symlinks: Whether the scan tracks real paths for cycle detection

    Returns:
        ScanTask for the canonical root

    Raises:
        ScanIOError: If the root does not exist or cannot be resolved
    """
    try:
        canonical = Path(root).resolve(strict=True)
    except OSError as e:
        raise ScanIOError(Path(root), "canonicalize", e) from e

    if not follow_symlinks:
        return ScanTask(path=canonical)
    return ScanTask(path=canonical, real_path=canonical, lineage=frozenset({canonical}))


class PathClassifier(PathClassifierInterface):
    """
    Concrete implementation of PathClassifierInterface.

    Provides:
    - Marker checks in fixed priority order, without following symlinks
    - Listing of immediate subdirectories
    - An explicit policy for symlinked subdirectories (skipped by default,
      followed with cycle detection when enabled)
    """

    def __init__(
        self,
        descriptors: Sequence[VCSDescriptor] = VCS_DESCRIPTORS,
        follow_symlinks: bool = False,
        symlink_validator: SymlinkValidator | None = None,
    ):
        """
        Initialize the PathClassifier.

        Args:
            descriptors: VCS descriptors in priority order.
            follow_symlinks: Whether symlinked subdirectories are expanded
                            (default: False, which keeps traversal acyclic).
            symlink_validator: Validator used when following symlinks.
        """
        self._descriptors = tuple(descriptors)
        self._follow_symlinks = follow_symlinks
        self._symlink_validator = symlink_validator or SymlinkValidator()

    @property
    def descriptors(self) -> tuple[VCSDescriptor, ...]:
        return self._descriptors

    @property
    def follow_symlinks(self) -> bool:
        return self._follow_symlinks

    def classify(self, path: Path) -> ClassificationResult:
        for descriptor in self._descriptors:
            if self._marker_exists(path / descriptor.marker):
                logger.debug(f"Matched {descriptor.name}: {path}")
                return ClassificationResult(path=path, descriptor=descriptor)
        return ClassificationResult.unclassified(path)

    def _marker_exists(self, marker_path: Path) -> bool:
        # lstat: a marker is never looked up through a symlink
        try:
            os.lstat(marker_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ScanIOError(marker_path, "stat", e) from e
        return True

    def expand(self, task: ScanTask) -> list[ScanTask]:
        """
        Expand an unclassified directory into ScanTasks for its subdirectories.

        Args:
            task: The unclassified directory

        Returns:
            One ScanTask per subdirectory that should be classified

        Raises:
            ScanIOError: If the directory or an entry cannot be read
        """
        try:
            entries = sorted(task.path.iterdir())
        except OSError as e:
            raise ScanIOError(task.path, "readdir", e) from e

        children: list[ScanTask] = []
        for entry in entries:
            try:
                mode = entry.lstat().st_mode
            except OSError as e:
                raise ScanIOError(entry, "metadata", e) from e

            if stat.S_ISDIR(mode):
                real_path = task.real_path / entry.name if task.real_path is not None else None
                children.append(task.child(entry, real_path))
            elif stat.S_ISLNK(mode):
                child = self._expand_symlink(task, entry)
                if child is not None:
                    children.append(child)

        return children

    def _expand_symlink(self, task: ScanTask, entry: Path) -> ScanTask | None:
        if not self._follow_symlinks:
            logger.debug(f"Skipping symlink (follow_symlinks=False): {entry}")
            return None

        result = self._symlink_validator.is_safe_symlink(entry, task.lineage)
        if not result.safe:
            logger.debug(f"Skipping symlink: {entry} - {result.reason}")
            return None

        return task.child(entry, result.target_path)
