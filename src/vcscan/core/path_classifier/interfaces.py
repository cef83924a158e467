"""
Abstract interfaces for path classification.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from .models import ClassificationResult, ScanTask


class PathClassifierInterface(ABC):
    """
    Abstract interface for deciding what a directory is.

    Implementations are called from executor threads, so they must not rely
    on event-loop state.
    """

    @abstractmethod
    def classify(self, path: Path) -> ClassificationResult:
        """
        Test the directory for VCS markers in priority order.

        Args:
            path: Directory to classify

        Returns:
            ClassificationResult carrying the first matching descriptor,
            or an unclassified result

        Raises:
            ScanIOError: If a marker cannot be stat'ed for any reason other
                than not existing
        """
        pass

    @abstractmethod
    def expand(self, task: ScanTask) -> list[ScanTask]:
        """
        Expand an unclassified directory into tasks for its subdirectories.

        Args:
            task: Directory to list

        Returns:
            One ScanTask per child directory; non-directories are skipped

        Raises:
            ScanIOError: If the directory or one of its entries cannot be read
        """
        pass
