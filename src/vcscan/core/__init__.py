"""
Core Layer - configuration, errors, logging and path classification.
"""

from vcscan.core.config import (
    LoggingConfig,
    OutputConfig,
    ScanConfig,
    VcscanConfig,
    default_worker_count,
    load_config,
)
from vcscan.core.errors import (
    ConfigError,
    CoordinationError,
    ScanIOError,
    StatusExecutionError,
    VcscanError,
)
from vcscan.core.path_classifier import (
    VCS_DESCRIPTORS,
    ClassificationResult,
    PathClassifier,
    PathClassifierInterface,
    ScanTask,
    VCSDescriptor,
    resolve_root,
)
from vcscan.core.symlink_validator import SymlinkValidationResult, SymlinkValidator

__all__ = [
    # Config
    "VcscanConfig",
    "ScanConfig",
    "OutputConfig",
    "LoggingConfig",
    "default_worker_count",
    "load_config",
    # Errors
    "VcscanError",
    "ScanIOError",
    "StatusExecutionError",
    "CoordinationError",
    "ConfigError",
    # PathClassifier
    "VCSDescriptor",
    "VCS_DESCRIPTORS",
    "ScanTask",
    "ClassificationResult",
    "PathClassifierInterface",
    "PathClassifier",
    "resolve_root",
    # Symlinks
    "SymlinkValidator",
    "SymlinkValidationResult",
]
