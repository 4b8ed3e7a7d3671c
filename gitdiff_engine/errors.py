"""Exceptions raised by the engine and its git collaborator layer."""

from typing import Optional


class GitDiffEngineError(Exception):
    """Base class for every error raised by this package."""


class InvalidResolutionTransition(GitDiffEngineError, ValueError):
    """A conflict chunk was asked to move between two states it cannot link."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change resolution from {current} to {requested}")


class UnresolvedConflictsError(GitDiffEngineError):
    """A fully resolved file was requested but some chunks are still open."""

    def __init__(self, path: str, remaining: int):
        self.path = path
        self.remaining = remaining
        super().__init__(f"{path} still has {remaining} unresolved conflict(s)")


class PatchError(GitDiffEngineError):
    """A patch could not be built from the given hunk or line."""


class GitOperationError(GitDiffEngineError):
    """A git command run on behalf of the engine failed."""

    def __init__(self, command: str, message: str, stderr: Optional[str] = None):
        self.command = command
        self.stderr = stderr or ""
        super().__init__(f"{command} failed: {message}")


class MergeConflictError(GitOperationError):
    """A merge stopped because it produced conflicts."""
