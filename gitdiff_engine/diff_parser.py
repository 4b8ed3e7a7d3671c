"""Parser that turns unified diff text into FileDiff records."""

import asyncio
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from .models import (
    TRUNCATION_MARKER,
    DiffHunk,
    DiffLine,
    DiffLineType,
    FileDiff,
    determine_status,
)
from .settings import settings

logger = structlog.get_logger(__name__)

HUNK_HEADER_RE = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')
DIFF_GIT_RE = re.compile(r'^diff --git a/(.+) b/(.+)$')
BINARY_FILES_RE = re.compile(r'^Binary files (.+) and (.+) differ$')
GIT_BINARY_PATCH = 'GIT binary patch'


@dataclass
class DiffParseResult:
    """Files parsed from one diff plus whether a safety limit cut it short."""
    files: List[FileDiff]
    truncated: bool = False
    truncation_reason: Optional[str] = None  # 'bytes' or 'lines'


@dataclass
class _OpenHunk:
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    old_counter: int
    new_counter: int
    lines: List[DiffLine] = field(default_factory=list)

    def freeze(self) -> DiffHunk:
        return DiffHunk(
            header=self.header,
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            lines=tuple(self.lines),
        )


@dataclass
class _OpenFile:
    old_path: Optional[str] = None
    new_path: str = ""
    hunks: List[DiffHunk] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False

    def freeze(self) -> FileDiff:
        return FileDiff(
            old_path=self.old_path,
            new_path=self.new_path,
            status=determine_status(self.old_path, self.new_path),
            hunks=tuple(self.hunks),
            additions=self.additions,
            deletions=self.deletions,
            is_binary=self.is_binary,
        )


def truncate_utf8(text: str, max_bytes: int) -> Tuple[str, bool]:
    """
    Cut text down to at most max_bytes of UTF-8 without splitting a code point.

    Args:
        text: Text to limit
        max_bytes: Largest encoded size allowed

    Returns:
        The (possibly shortened) text and whether anything was removed
    """
    if len(text) * 4 <= max_bytes:
        return text, False

    # Every character takes at least one byte, so the first max_bytes + 1
    # characters are enough to locate the cut.
    encoded = text[:max_bytes + 1].encode('utf-8', 'surrogatepass')
    if len(encoded) <= max_bytes:
        return text, False

    cut = max_bytes
    # encoded[cut] is the first byte dropped; back up while it continues a code point
    while cut > 0 and (encoded[cut] & 0xC0) == 0x80:
        cut -= 1
    return encoded[:cut].decode('utf-8', 'surrogatepass'), True


def _split_lines(text: str) -> List[str]:
    lines = text.split('\n')
    if lines and lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


def _strip_path_prefix(raw: str, prefix: str) -> str:
    return raw[len(prefix):] if raw.startswith(prefix) else raw


def _old_path(raw: str) -> Optional[str]:
    path = _strip_path_prefix(raw, 'a/')
    return None if path == '/dev/null' else path


def _header_paths(line: str) -> Optional[Tuple[Optional[str], str]]:
    match = DIFF_GIT_RE.match(line)
    if not match:
        return None
    return match.group(1), match.group(2)


def _open_binary_file(line: str, current_file: Optional[_OpenFile],
                      header_paths: Optional[Tuple[Optional[str], str]]) -> Optional[_OpenFile]:
    """Record a file whose change git reports as binary instead of as hunks."""
    if current_file is None:
        match = BINARY_FILES_RE.match(line)
        if match:
            old_path, new_path = _old_path(match.group(1)), _strip_path_prefix(match.group(2), 'b/')
        elif header_paths is not None:
            old_path, new_path = header_paths
        else:
            return None
        current_file = _OpenFile(old_path=old_path, new_path=new_path)
    current_file.is_binary = True
    return current_file


class DiffParser:
    """
    Line-oriented state machine over unified diff text.

    A parser holds only its limits, so one instance can be shared between
    threads and tasks.
    """

    def __init__(self, max_bytes: Optional[int] = None, max_lines: Optional[int] = None):
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_diff_bytes()
        self.max_lines = max_lines if max_lines is not None else settings.max_diff_lines()

    def parse(self, diff_text: str) -> List[FileDiff]:
        """
        Parse git diff output into structured FileDiff objects.

        Malformed input never raises; it yields whatever could be recovered.

        Args:
            diff_text: Raw git diff output

        Returns:
            List of FileDiff objects in the order they appear in the text
        """
        return self.parse_detailed(diff_text).files

    async def parse_async(self, diff_text: str) -> List[FileDiff]:
        """Run parse() in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.parse, diff_text)

    def parse_detailed(self, diff_text: str) -> DiffParseResult:
        """Parse diff text and also report whether a limit was hit."""
        files: List[FileDiff] = []
        current_file: Optional[_OpenFile] = None
        current_hunk: Optional[_OpenHunk] = None
        header_paths: Optional[Tuple[Optional[str], str]] = None
        truncation_reason = None

        text, cut = truncate_utf8(diff_text, self.max_bytes)
        if cut:
            truncation_reason = 'bytes'

        for processed, line in enumerate(_split_lines(text), start=1):
            if processed > self.max_lines:
                truncation_reason = truncation_reason or 'lines'
                break

            if line.startswith('diff --git'):
                if current_file is not None:
                    if current_hunk is not None:
                        current_file.hunks.append(current_hunk.freeze())
                    files.append(current_file.freeze())
                current_file = None
                current_hunk = None
                header_paths = _header_paths(line)

            elif line.startswith('--- '):
                old_path = _old_path(line[4:])
                if current_file is None:
                    current_file = _OpenFile(old_path=old_path)
                else:
                    current_file.old_path = old_path

            elif line.startswith('+++ '):
                path = _strip_path_prefix(line[4:], 'b/')
                if current_file is None:
                    current_file = _OpenFile(new_path=path)
                else:
                    current_file.new_path = path

            elif line.startswith('@@'):
                if current_hunk is not None and current_file is not None:
                    current_file.hunks.append(current_hunk.freeze())
                current_hunk = self._open_hunk(line)

            elif current_hunk is not None:
                self._consume_body_line(line, current_hunk, current_file)

            elif line.startswith('Binary files ') or line == GIT_BINARY_PATCH:
                current_file = _open_binary_file(line, current_file, header_paths)

            elif header_paths is not None and line.startswith('new file mode'):
                header_paths = (None, header_paths[1])

            elif header_paths is not None and line.startswith('deleted file mode'):
                header_paths = (header_paths[0], '/dev/null')

        if truncation_reason:
            logger.info(
                "diff_truncated",
                reason=truncation_reason,
                max_bytes=self.max_bytes,
                max_lines=self.max_lines,
            )

        if current_file is not None:
            if current_hunk is not None:
                if truncation_reason:
                    current_hunk.lines.append(DiffLine(type=DiffLineType.CONTEXT, content=TRUNCATION_MARKER))
                current_file.hunks.append(current_hunk.freeze())
            files.append(current_file.freeze())

        return DiffParseResult(
            files=files,
            truncated=truncation_reason is not None,
            truncation_reason=truncation_reason,
        )

    def _open_hunk(self, header: str) -> Optional[_OpenHunk]:
        match = HUNK_HEADER_RE.match(header)
        if not match:
            logger.warning("hunk_header_unparsed", header=header[:200])
            return None

        old_start = int(match.group(1))
        old_lines = int(match.group(2)) if match.group(2) else 1
        new_start = int(match.group(3))
        new_lines = int(match.group(4)) if match.group(4) else 1
        return _OpenHunk(
            header=header,
            old_start=old_start,
            old_lines=old_lines,
            new_start=new_start,
            new_lines=new_lines,
            old_counter=old_start,
            new_counter=new_start,
        )

    def _consume_body_line(self, line: str, hunk: _OpenHunk, file: Optional[_OpenFile]) -> None:
        if line.startswith('+'):
            hunk.lines.append(DiffLine(
                type=DiffLineType.ADDITION,
                content=line[1:],
                new_line_number=hunk.new_counter,
            ))
            hunk.new_counter += 1
            if file is not None:
                file.additions += 1
        elif line.startswith('-'):
            hunk.lines.append(DiffLine(
                type=DiffLineType.DELETION,
                content=line[1:],
                old_line_number=hunk.old_counter,
            ))
            hunk.old_counter += 1
            if file is not None:
                file.deletions += 1
        else:
            # Anything unrecognised, e.g. "\ No newline at end of file", counts as context
            hunk.lines.append(DiffLine(
                type=DiffLineType.CONTEXT,
                content=line[1:] if line.startswith(' ') else line,
                old_line_number=hunk.old_counter,
                new_line_number=hunk.new_counter,
            ))
            hunk.old_counter += 1
            hunk.new_counter += 1


def parse_diff_output(diff_text: str, max_bytes: Optional[int] = None,
                      max_lines: Optional[int] = None) -> List[FileDiff]:
    """
    Parse git diff output into structured FileDiff objects.

    Args:
        diff_text: Raw git diff output
        max_bytes: Byte cap; defaults to the configured value
        max_lines: Line cap; defaults to the configured value

    Returns:
        List of FileDiff objects representing the changes
    """
    return DiffParser(max_bytes=max_bytes, max_lines=max_lines).parse(diff_text)
