"""Conflict marker parsing and per-chunk resolution state."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import structlog

from .errors import InvalidResolutionTransition

logger = structlog.get_logger(__name__)

OURS_MARKER = '<<<<<<<'
BASE_MARKER = '|||||||'
THEIRS_MARKER = '======='
END_MARKER = '>>>>>>>'


class ResolutionKind(str, Enum):
    UNRESOLVED = "unresolved"
    OURS = "ours"
    THEIRS = "theirs"
    BOTH = "both"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Resolution:
    """
    Decision taken for one conflict chunk.

    Only the custom kind carries text; two resolutions are equal when both
    their kind and text match.
    """
    kind: ResolutionKind
    text: Optional[str] = None

    @classmethod
    def custom(cls, text: str) -> "Resolution":
        return cls(ResolutionKind.CUSTOM, text)

    @property
    def is_resolved(self) -> bool:
        return self.kind is not ResolutionKind.UNRESOLVED

    def __str__(self) -> str:
        return self.kind.value


UNRESOLVED = Resolution(ResolutionKind.UNRESOLVED)
OURS = Resolution(ResolutionKind.OURS)
THEIRS = Resolution(ResolutionKind.THEIRS)
BOTH = Resolution(ResolutionKind.BOTH)


@dataclass
class ConflictChunk:
    """A single conflict block, addressed by its marker line indices."""
    start_line: int
    end_line: int
    ours_lines: List[str] = field(default_factory=list)
    theirs_lines: List[str] = field(default_factory=list)
    base_lines: Optional[List[str]] = None
    resolution: Resolution = UNRESOLVED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_resolved(self) -> bool:
        return self.resolution.is_resolved

    @property
    def resolved_content(self) -> str:
        return resolved_content(self)

    def resolve(self, resolution: Resolution) -> None:
        """Record a decision; only an unresolved chunk can take one."""
        if self.is_resolved or not resolution.is_resolved:
            raise InvalidResolutionTransition(self.resolution, resolution)
        if resolution.kind is ResolutionKind.CUSTOM and resolution.text is None:
            raise InvalidResolutionTransition(self.resolution, resolution)
        self.resolution = resolution

    def undo(self) -> None:
        """Return a resolved chunk to the unresolved state."""
        if not self.is_resolved:
            raise InvalidResolutionTransition(self.resolution, UNRESOLVED)
        self.resolution = UNRESOLVED


def resolved_content(chunk: ConflictChunk) -> str:
    """Text that replaces the chunk's marker block under its current resolution."""
    kind = chunk.resolution.kind
    if kind is ResolutionKind.OURS:
        return '\n'.join(chunk.ours_lines)
    if kind is ResolutionKind.THEIRS:
        return '\n'.join(chunk.theirs_lines)
    if kind is ResolutionKind.BOTH:
        return '\n'.join(chunk.ours_lines) + '\n' + '\n'.join(chunk.theirs_lines)
    if kind is ResolutionKind.CUSTOM:
        return chunk.resolution.text or ''
    return ''


def parse_conflicts(content: str) -> List[ConflictChunk]:
    """
    Find every conflict block in file content.

    Supports both the two-way and the diff3 (``|||||||`` base section)
    marker styles. A block still open at the end of the content is dropped.

    Args:
        content: File text containing conflict markers

    Returns:
        List of ConflictChunk objects in ascending line order
    """
    lines = content.split('\n')
    chunks = []

    i = 0
    while i < len(lines):
        if not lines[i].startswith(OURS_MARKER):
            i += 1
            continue

        start_line = i
        ours_lines: List[str] = []
        theirs_lines: List[str] = []
        base_lines: Optional[List[str]] = None
        section = ours_lines
        closed = False

        i += 1
        while i < len(lines):
            line = lines[i]
            if line.startswith(BASE_MARKER):
                base_lines = []
                section = base_lines
            elif line.startswith(THEIRS_MARKER):
                section = theirs_lines
            elif line.startswith(END_MARKER):
                chunks.append(ConflictChunk(
                    start_line=start_line,
                    end_line=i,
                    ours_lines=ours_lines,
                    theirs_lines=theirs_lines,
                    base_lines=base_lines,
                ))
                closed = True
                break
            else:
                section.append(line)
            i += 1

        if not closed:
            logger.warning("conflict_unterminated", start_line=start_line)
        i += 1

    return chunks
