"""Builds unified diff patches for a hunk or a single changed line.

The patches are meant for ``git apply --unidiff-zero`` and drive hunk and
line level staging, unstaging and discarding.
"""

from typing import List, Tuple

from .errors import PatchError
from .models import DiffHunk, DiffLine, DiffLineType

MAX_CONTEXT = 3


def _file_headers(file_path: str) -> List[str]:
    return [f"--- a/{file_path}\n", f"+++ b/{file_path}\n"]


def _change_line(line: DiffLine, inverse: bool) -> str:
    is_addition = line.type is DiffLineType.ADDITION
    if inverse:
        is_addition = not is_addition
    return f"{'+' if is_addition else '-'}{line.content}\n"


def create_hunk_patch(hunk: DiffHunk, file_path: str, inverse: bool = False) -> str:
    """
    Create a patch containing one whole hunk.

    Args:
        hunk: Hunk to turn into a patch
        file_path: Repository-relative path of the file
        inverse: Swap the two sides so the patch undoes the hunk

    Returns:
        Patch text
    """
    if inverse:
        old_start, old_lines = hunk.new_start, hunk.new_lines
        new_start, new_lines = hunk.old_start, hunk.old_lines
    else:
        old_start, old_lines = hunk.old_start, hunk.old_lines
        new_start, new_lines = hunk.new_start, hunk.new_lines

    parts = _file_headers(file_path)
    parts.append(f"@@ -{old_start},{old_lines} +{new_start},{new_lines} @@\n")

    for line in hunk.lines:
        if line.type is DiffLineType.HUNK_HEADER:
            continue
        if line.type is DiffLineType.CONTEXT:
            parts.append(f" {line.content}\n")
        else:
            parts.append(_change_line(line, inverse))

    return ''.join(parts)


def _gather_context(hunk: DiffHunk, target_index: int) -> Tuple[List[DiffLine], List[DiffLine]]:
    """Context lines next to the target, stopping at the first other change."""
    before: List[DiffLine] = []
    after: List[DiffLine] = []

    i = target_index - 1
    while i >= 0 and len(before) < MAX_CONTEXT:
        line = hunk.lines[i]
        if line.type is DiffLineType.CONTEXT:
            before.insert(0, line)
        elif line.type is not DiffLineType.HUNK_HEADER:
            break
        i -= 1

    j = target_index + 1
    while j < len(hunk.lines) and len(after) < MAX_CONTEXT:
        line = hunk.lines[j]
        if line.type is DiffLineType.CONTEXT:
            after.append(line)
        elif line.type is not DiffLineType.HUNK_HEADER:
            break
        j += 1

    return before, after


def _line_patch_bounds(target: DiffLine, before: List[DiffLine], after: List[DiffLine],
                       inverse: bool) -> Tuple[int, int, int, int]:
    context_count = len(before) + len(after)

    if before:
        old_start = before[0].old_line_number or 1
        new_start = before[0].new_line_number or 1
    elif target.type is DiffLineType.DELETION:
        old_start = new_start = target.old_line_number or 1
    else:
        old_start = new_start = target.new_line_number or 1

    old_count = new_count = context_count
    effective_is_deletion = (target.type is DiffLineType.DELETION) != inverse
    if effective_is_deletion:
        old_count += 1
    else:
        new_count += 1

    return old_start, old_count, new_start, new_count


def create_line_patch(hunk: DiffHunk, line_index: int, file_path: str, inverse: bool = False) -> str:
    """
    Create a minimal patch for a single added or deleted line.

    Args:
        hunk: Hunk containing the line
        line_index: Index of the line within hunk.lines
        file_path: Repository-relative path of the file
        inverse: Flip the change so the patch undoes it

    Returns:
        Patch text

    Raises:
        PatchError: If the index is out of range or points at a context line
    """
    if not 0 <= line_index < len(hunk.lines):
        raise PatchError(f"Line index {line_index} is outside the hunk")

    target = hunk.lines[line_index]
    if not target.is_change:
        raise PatchError("Only additions and deletions can be turned into a patch")

    before, after = _gather_context(hunk, line_index)
    old_start, old_count, new_start, new_count = _line_patch_bounds(target, before, after, inverse)

    parts = _file_headers(file_path)
    parts.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@\n")
    parts.extend(f" {line.content}\n" for line in before)
    parts.append(_change_line(target, inverse))
    parts.extend(f" {line.content}\n" for line in after)

    return ''.join(parts)
