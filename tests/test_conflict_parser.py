"""Tests for conflict marker parsing and the chunk resolution state machine."""

import os
import sys

import pytest
from structlog.testing import capture_logs

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from gitdiff_engine.conflict_parser import (
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
from gitdiff_engine.errors import InvalidResolutionTransition

TWO_WAY = "<<<<<<< HEAD\nfoo\n=======\nbar\n>>>>>>> branch\n"

DIFF3 = """def greet():
<<<<<<< ours
    return "hi"
||||||| base
    return "hello"
=======
    return "hey"
>>>>>>> theirs
"""


class TestParseConflicts:
    """Test chunk discovery."""

    def test_two_way_chunk(self):
        chunks = parse_conflicts(TWO_WAY)

        assert len(chunks) == 1
        chunk = chunks[0]
        assert (chunk.start_line, chunk.end_line) == (0, 4)
        assert chunk.ours_lines == ["foo"]
        assert chunk.theirs_lines == ["bar"]
        assert chunk.base_lines is None
        assert chunk.resolution == UNRESOLVED

    def test_diff3_chunk_has_base(self):
        chunk = parse_conflicts(DIFF3)[0]

        assert (chunk.start_line, chunk.end_line) == (1, 7)
        assert chunk.ours_lines == ['    return "hi"']
        assert chunk.base_lines == ['    return "hello"']
        assert chunk.theirs_lines == ['    return "hey"']

    def test_diff3_empty_base(self):
        chunk = parse_conflicts("<<<<<<< a\nx\n||||||| b\n=======\ny\n>>>>>>> c")[0]
        assert chunk.base_lines == []

    def test_multiple_chunks_ascending(self):
        content = "\n".join([
            "top",
            "<<<<<<< HEAD", "a1", "=======", "b1", ">>>>>>> other",
            "middle",
            "<<<<<<< HEAD", "a2", "a3", "=======", ">>>>>>> other",
            "bottom",
        ])
        chunks = parse_conflicts(content)

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 5), (7, 11)]
        assert chunks[1].ours_lines == ["a2", "a3"]
        assert chunks[1].theirs_lines == []
        assert chunks[0].id != chunks[1].id

    def test_empty_sides(self):
        chunk = parse_conflicts("<<<<<<<\n=======\n>>>>>>>")[0]
        assert chunk.ours_lines == []
        assert chunk.theirs_lines == []

    def test_unterminated_chunk_is_dropped(self):
        with capture_logs() as logs:
            chunks = parse_conflicts("<<<<<<< HEAD\nx\n=======\ny")

        assert chunks == []
        assert [(log["event"], log["log_level"]) for log in logs] == [("conflict_unterminated", "warning")]

    def test_unterminated_after_complete_chunk(self):
        content = TWO_WAY + "between\n<<<<<<< HEAD\nnever closed\n"
        chunks = parse_conflicts(content)

        assert len(chunks) == 1
        assert chunks[0].ours_lines == ["foo"]

    def test_complete_chunks_log_nothing(self):
        with capture_logs() as logs:
            parse_conflicts(TWO_WAY)
        assert logs == []

    def test_no_markers(self):
        assert parse_conflicts("plain\ntext\n") == []
        assert parse_conflicts("") == []

    def test_marker_prefix_must_be_at_line_start(self):
        assert parse_conflicts("  <<<<<<< HEAD\nx\n=======\ny\n>>>>>>> b") == []


class TestResolvedContent:
    """Test the text each resolution produces."""

    def make_chunk(self, resolution):
        return ConflictChunk(start_line=0, end_line=6, ours_lines=["o1", "o2"],
                             theirs_lines=["t1"], resolution=resolution)

    @pytest.mark.parametrize("resolution,expected", [
        (UNRESOLVED, ""),
        (OURS, "o1\no2"),
        (THEIRS, "t1"),
        (BOTH, "o1\no2\nt1"),
        (Resolution.custom("merged\nby hand"), "merged\nby hand"),
    ])
    def test_resolved_content(self, resolution, expected):
        chunk = self.make_chunk(resolution)
        assert resolved_content(chunk) == expected
        assert chunk.resolved_content == expected

    def test_both_puts_ours_first(self):
        chunk = parse_conflicts(TWO_WAY)[0]
        chunk.resolve(BOTH)
        assert chunk.resolved_content == "foo\nbar"


class TestResolutionStateMachine:
    """Only unresolved -> resolved and resolved -> unresolved are allowed."""

    def test_resolve_and_undo(self):
        chunk = parse_conflicts(TWO_WAY)[0]

        chunk.resolve(OURS)
        assert chunk.is_resolved
        assert chunk.resolution == OURS

        chunk.undo()
        assert not chunk.is_resolved
        assert chunk.resolution == UNRESOLVED

        chunk.resolve(Resolution.custom("x"))
        assert chunk.resolution.kind is ResolutionKind.CUSTOM

    def test_cannot_switch_between_resolved_states(self):
        chunk = parse_conflicts(TWO_WAY)[0]
        chunk.resolve(OURS)

        with pytest.raises(InvalidResolutionTransition):
            chunk.resolve(THEIRS)
        assert chunk.resolution == OURS

    def test_cannot_resolve_to_unresolved(self):
        chunk = parse_conflicts(TWO_WAY)[0]
        with pytest.raises(InvalidResolutionTransition):
            chunk.resolve(UNRESOLVED)

    def test_cannot_undo_unresolved(self):
        chunk = parse_conflicts(TWO_WAY)[0]
        with pytest.raises(ValueError):
            chunk.undo()

    def test_resolution_equality(self):
        assert Resolution.custom("a") == Resolution.custom("a")
        assert Resolution.custom("a") != Resolution.custom("b")
        assert Resolution.custom("") != BOTH
        assert OURS == Resolution(ResolutionKind.OURS)
        assert OURS != THEIRS
        assert len({OURS, Resolution(ResolutionKind.OURS), Resolution.custom("a")}) == 2
