"""Applies chunk resolutions back onto conflicted file content."""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

import structlog

from .conflict_parser import END_MARKER, OURS_MARKER, THEIRS_MARKER, ConflictChunk, resolved_content

logger = structlog.get_logger(__name__)


@dataclass
class ConflictFile:
    """A conflicted path with the three index versions git recorded for it."""
    path: str
    ours_content: str
    theirs_content: str
    base_content: Optional[str] = None
    is_resolved: bool = False
    resolved_content: Optional[str] = None

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name


def apply_resolutions(original: str, chunks: Iterable[ConflictChunk]) -> str:
    """
    Replace each resolved chunk's marker block with its resolved text.

    Chunks are spliced from the bottom of the file upwards so that the
    recorded indices of chunks above stay valid. Unresolved chunks keep
    their markers.

    Args:
        original: The conflicted content the chunks were parsed from
        chunks: Chunks with their current resolutions

    Returns:
        The merged content
    """
    lines = original.split('\n')
    applied = 0

    for chunk in sorted(chunks, key=lambda c: c.start_line, reverse=True):
        if not chunk.is_resolved:
            continue
        lines[chunk.start_line:chunk.end_line + 1] = resolved_content(chunk).split('\n')
        applied += 1

    logger.debug("resolution_applied", applied=applied)
    return '\n'.join(lines)


def unresolved_chunks(chunks: Iterable[ConflictChunk]) -> List[ConflictChunk]:
    """Chunks that still need a decision."""
    return [chunk for chunk in chunks if not chunk.is_resolved]


def has_conflict_markers(text: str) -> bool:
    """True when text still contains a complete conflict block."""
    seen_start = seen_middle = False
    for line in text.split('\n'):
        if line.startswith(OURS_MARKER):
            seen_start, seen_middle = True, False
        elif seen_start and line.startswith(THEIRS_MARKER):
            seen_middle = True
        elif seen_middle and line.startswith(END_MARKER):
            return True
    return False
