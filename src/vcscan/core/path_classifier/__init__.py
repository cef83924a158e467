"""
PathClassifier module for vcscan.

Identifies VCS working-copy roots by their marker entries and expands
unclassified directories into their subdirectories.
"""

from .classifier import PathClassifier, resolve_root
from .interfaces import PathClassifierInterface
from .models import VCS_DESCRIPTORS, ClassificationResult, ScanTask, VCSDescriptor

__all__ = [
    # Main classes
    "PathClassifier",
    "PathClassifierInterface",
    "resolve_root",
    # Models
    "ClassificationResult",
    "ScanTask",
    "VCSDescriptor",
    # Constants
    "VCS_DESCRIPTORS",
]
