"""
SymlinkValidator module for vcscan.

Decides whether a symlinked child directory may be followed when the scan is
configured to follow symlinks. A symlink is followed only if:
- It resolves to an existing directory
- Its target is not a directory already on the current traversal path
- Its target is not an ancestor of a directory on the current traversal path
"""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class SymlinkValidationResult:
    """
    Result of symlink validation.

    Attributes:
        safe: True if symlink is safe to follow
        reason: Reason if unsafe (for logging), None if safe
        target_path: Resolved target path if safe, None if unsafe
    """

    safe: bool
    reason: str | None
    target_path: Path | None


class SymlinkValidator:
    """
    Validates symbolic links to keep traversal free of cycles.

    The validator is stateless; the caller passes the set of real paths on
    the traversal path leading to the symlink.
    """

    def is_safe_symlink(
        self, symlink_path: Path, visited: frozenset[Path] | set[Path] | None = None
    ) -> SymlinkValidationResult:
        """
        Check if a symlink is safe to follow.

        Performs the following checks in order:
        1. Resolves the symlink to its real path
        2. Checks the target is an existing directory
        3. Checks for cycles (if visited set provided)

        Args:
            symlink_path: Path to the symlink to validate
            visited: Real paths of the directories between the scan root and
                    the symlink. If None, cycle detection is skipped.

        Returns:
            SymlinkValidationResult with safe status, reason if unsafe, and target path
        """
        symlink_path = Path(symlink_path)

        if not symlink_path.is_symlink():
            return SymlinkValidationResult(
                safe=False,
                reason="Path is not a symlink",
                target_path=None,
            )

        try:
            target_path = symlink_path.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            # RuntimeError is raised for symlink loops on older interpreters
            reason = f"Failed to resolve symlink: {e}"
            logger.debug(f"Skipping symlink {symlink_path}: {reason}")
            return SymlinkValidationResult(safe=False, reason=reason, target_path=None)

        if not target_path.is_dir():
            reason = "Symlink target is not a directory"
            logger.debug(f"Skipping symlink {symlink_path} -> {target_path}: {reason}")
            return SymlinkValidationResult(safe=False, reason=reason, target_path=None)

        if visited is not None and self._creates_cycle(target_path, visited):
            reason = "Symlink creates a cycle back to an ancestor directory"
            logger.debug(f"Skipping symlink {symlink_path} -> {target_path}: {reason}")
            return SymlinkValidationResult(safe=False, reason=reason, target_path=None)

        return SymlinkValidationResult(safe=True, reason=None, target_path=target_path)

    def _creates_cycle(self, target_path: Path, visited: frozenset[Path] | set[Path]) -> bool:
        """
        Check if following a symlink would create a cycle.

        A cycle occurs when the symlink target is on the traversal path or is
        an ancestor of a directory on it.

        Args:
            target_path: Resolved target path of the symlink
            visited: Real paths on the current traversal path

        Returns:
            True if following this symlink would create a cycle
        """
        if target_path in visited:
            return True

        for visited_path in visited:
            try:
                visited_path.relative_to(target_path)
                return True
            except ValueError:
                continue

        return False
