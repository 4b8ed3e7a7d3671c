"""Immutable records produced by the diff parser."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Iterable, Optional, Tuple

TRUNCATION_MARKER = "... [Diff truncated - file too large to display fully] ..."


class DiffLineType(str, Enum):
    """Kind of a single line inside a hunk."""
    ADDITION = "addition"
    DELETION = "deletion"
    CONTEXT = "context"
    HUNK_HEADER = "hunk_header"


class FileStatus(str, Enum):
    """How a file changed between the two sides of a diff."""
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class DiffLine:
    """One body line of a hunk with its old-side and new-side numbers."""
    type: DiffLineType
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None

    @property
    def is_change(self) -> bool:
        return self.type in (DiffLineType.ADDITION, DiffLineType.DELETION)


@dataclass(frozen=True)
class DiffHunk:
    """Represents a hunk of changes within a file.

    The four range fields are copied from the ``@@`` header as written and
    are not checked against the number of body lines.
    """
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: Tuple[DiffLine, ...] = field(default_factory=tuple)

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.type is DiffLineType.ADDITION)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.type is DiffLineType.DELETION)

    @property
    def is_truncated(self) -> bool:
        if not self.lines:
            return False
        last = self.lines[-1]
        return last.content == TRUNCATION_MARKER and last.old_line_number is None


@dataclass(frozen=True)
class FileDiff:
    """Represents changes to a single file in a diff."""
    old_path: Optional[str]
    new_path: str
    status: FileStatus
    hunks: Tuple[DiffHunk, ...] = field(default_factory=tuple)
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False

    @property
    def display_path(self) -> str:
        return self.new_path

    @property
    def filename(self) -> str:
        return PurePosixPath(self.new_path).name

    @property
    def has_changes(self) -> bool:
        return self.additions > 0 or self.deletions > 0


@dataclass(frozen=True)
class DiffStats:
    """Totals across every file of a parsed diff."""
    additions: int
    deletions: int
    files_changed: int

    @classmethod
    def from_files(cls, files: Iterable[FileDiff]) -> "DiffStats":
        additions = deletions = count = 0
        for file_diff in files:
            additions += file_diff.additions
            deletions += file_diff.deletions
            count += 1
        return cls(additions=additions, deletions=deletions, files_changed=count)


def determine_status(old_path: Optional[str], new_path: str) -> FileStatus:
    """Derive a file's status from the paths on its ``---`` and ``+++`` lines."""
    if old_path is None or old_path == "/dev/null":
        return FileStatus.ADDED
    if not new_path or new_path == "/dev/null":
        return FileStatus.DELETED
    if old_path != new_path:
        return FileStatus.RENAMED
    return FileStatus.MODIFIED
