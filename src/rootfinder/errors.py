"""
Exception hierarchy for rootfinder.

Structural misuse (bad roots, unset paths, unreadable directories, failed
locks) is raised as one of these. A lookup that simply finds nothing is
never an error: the finder returns ``None`` or an empty tuple instead.
"""

from typing import Optional


class FinderError(Exception):
    """Base class for all rootfinder errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidRoot(FinderError, ValueError):
    """Raised when a search root does not exist or escapes the containment root."""
    pass


class MissingPath(FinderError, ValueError):
    """Raised when an operation needs a path and none is set."""
    pass


class UnreadablePath(FinderError, PermissionError):
    """Raised when a directory cannot be read during listing."""
    pass


class LockFailed(FinderError, OSError):
    """Raised when an advisory lock cannot be opened or acquired."""
    pass
