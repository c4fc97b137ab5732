"""Path allow-list gate shared by every filesystem-touching tool.

Paths are normalized lexically (``os.path.abspath``): ``.`` and ``..``
segments are collapsed and relative paths are joined to the current working
directory. Symlinks are not followed.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from mcp_toolkit.exceptions import AccessDeniedError

logger = logging.getLogger(__name__)


def normalize_path(path: str | Path) -> str:
    """Expand ``~`` and return the absolute, lexically normalized form of ``path``."""
    return os.path.abspath(os.path.expanduser(str(path)))


class PathAuthorizer:
    """Validates that requested paths fall inside an allowed directory.

    With ``enforce_boundary`` (the default) a path is allowed only when it
    equals an allowed directory or continues with a separator after it, so
    ``/data/foobar`` is rejected for ``/data/foo``. With ``enforce_boundary``
    off the check is a plain string-prefix test and such siblings pass.

    An empty allow-list denies everything.

    Example:
        >>> authorizer = PathAuthorizer(["/allowed"])
        >>> authorizer.validate("/allowed/sub/../file.txt")
        '/allowed/file.txt'
    """

    def __init__(self, allowed_directories: Iterable[str | Path], enforce_boundary: bool = True):
        # Deduplicate while keeping configuration order
        normalized: list[str] = []
        for directory in allowed_directories:
            candidate = normalize_path(directory)
            if candidate not in normalized:
                normalized.append(candidate)
        self._allowed = tuple(normalized)
        self.enforce_boundary = enforce_boundary

        if not self._allowed:
            logger.warning("No allowed directories configured; all filesystem access is denied")

    @property
    def allowed_directories(self) -> tuple[str, ...]:
        """Normalized allowed directories in configuration order."""
        return self._allowed

    def _matches(self, candidate: str, directory: str) -> bool:
        if not candidate.startswith(directory):
            return False
        if not self.enforce_boundary:
            return True
        if len(candidate) == len(directory) or directory.endswith(os.sep):
            return True
        return candidate[len(directory)] == os.sep

    def is_allowed(self, path: str | Path) -> bool:
        """Return True when ``path`` normalizes into an allowed directory."""
        candidate = normalize_path(path)
        return any(self._matches(candidate, directory) for directory in self._allowed)

    def validate(self, path: str | Path) -> str:
        """Return the normalized absolute path or raise AccessDeniedError.

        Args:
            path: Requested path, absolute or relative to the working directory

        Returns:
            Absolute normalized path

        Raises:
            AccessDeniedError: If the path falls outside every allowed directory
        """
        candidate = normalize_path(path)
        if any(self._matches(candidate, directory) for directory in self._allowed):
            return candidate

        logger.warning(f"Path outside allowed directories: {path} -> {candidate}")
        raise AccessDeniedError(candidate)
