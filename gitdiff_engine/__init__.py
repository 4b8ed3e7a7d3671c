"""gitdiff-engine - parse unified diffs and conflict markers, and apply conflict resolutions."""

from .models import (
    TRUNCATION_MARKER,
    DiffHunk,
    DiffLine,
    DiffLineType,
    DiffStats,
    FileDiff,
    FileStatus,
)
from .diff_parser import DiffParser, DiffParseResult, parse_diff_output, truncate_utf8
from .conflict_parser import (
    BOTH,
    OURS,
    THEIRS,
    UNRESOLVED,
    ConflictChunk,
    Resolution,
    ResolutionKind,
    parse_conflicts,
    resolved_content,
)
from .conflict_resolution import ConflictFile, apply_resolutions, has_conflict_markers, unresolved_chunks
from .patch_builder import create_hunk_patch, create_line_patch
from .errors import (
    GitDiffEngineError,
    GitOperationError,
    InvalidResolutionTransition,
    MergeConflictError,
    PatchError,
    UnresolvedConflictsError,
)

__version__ = "0.1.0"
__all__ = [
    "TRUNCATION_MARKER",
    "DiffHunk",
    "DiffLine",
    "DiffLineType",
    "DiffStats",
    "FileDiff",
    "FileStatus",
    "DiffParser",
    "DiffParseResult",
    "parse_diff_output",
    "truncate_utf8",
    "BOTH",
    "OURS",
    "THEIRS",
    "UNRESOLVED",
    "ConflictChunk",
    "Resolution",
    "ResolutionKind",
    "parse_conflicts",
    "resolved_content",
    "ConflictFile",
    "apply_resolutions",
    "has_conflict_markers",
    "unresolved_chunks",
    "create_hunk_patch",
    "create_line_patch",
    "GitDiffEngineError",
    "GitOperationError",
    "InvalidResolutionTransition",
    "MergeConflictError",
    "PatchError",
    "UnresolvedConflictsError",
]
