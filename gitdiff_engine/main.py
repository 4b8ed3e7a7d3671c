"""Command line entry point for inspecting diffs and conflicted files."""

import argparse
import sys
from typing import List, Optional

from .conflict_parser import parse_conflicts
from .diff_parser import DiffParser
from .errors import GitDiffEngineError
from .git_operations import get_commit_diff, get_working_diff
from .logging import configure_logging
from .models import DiffStats


def show_diff(args: argparse.Namespace) -> int:
    """Print a per-file summary of a commit or working tree diff."""
    if args.commit:
        diff_text = get_commit_diff(args.repo, args.commit)
    else:
        diff_text = get_working_diff(args.repo, file_path=args.file, staged=args.staged)

    result = DiffParser().parse_detailed(diff_text)
    for file_diff in result.files:
        print(f"{file_diff.status.value:>8}  {file_diff.display_path}  "
              f"+{file_diff.additions} -{file_diff.deletions}")
        if file_diff.is_binary:
            print("          (binary)")
        if file_diff.old_path and file_diff.old_path != file_diff.new_path:
            print(f"          (from {file_diff.old_path})")

    stats = DiffStats.from_files(result.files)
    print(f"\n{stats.files_changed} file(s) changed, "
          f"{stats.additions} insertion(s), {stats.deletions} deletion(s)")
    if result.truncated:
        print(f"Diff truncated ({result.truncation_reason} limit reached)")
    return 0


def show_conflicts(args: argparse.Namespace) -> int:
    """Print the conflict chunks found in a file."""
    with open(args.path, "r", encoding="utf-8") as f:
        content = f.read()

    chunks = parse_conflicts(content)
    if not chunks:
        print(f"No conflicts in {args.path}")
        return 0

    for number, chunk in enumerate(chunks, start=1):
        print(f"Conflict {number}: lines {chunk.start_line + 1}-{chunk.end_line + 1}")
        print(f"  ours: {len(chunk.ours_lines)} line(s), theirs: {len(chunk.theirs_lines)} line(s)")
        if chunk.base_lines is not None:
            print(f"  base: {len(chunk.base_lines)} line(s)")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gitdiff-engine", description=__doc__)
    parser.add_argument("--log-level", help="override GITDIFF_ENGINE_LOG_LEVEL for this run")
    subparsers = parser.add_subparsers(dest="command", required=True)

    diff = subparsers.add_parser("diff", help="summarise a commit or working tree diff")
    diff.add_argument("repo", help="path to the git repository")
    diff.add_argument("--commit", help="show this commit against its parent")
    diff.add_argument("--staged", action="store_true", help="diff the index instead of the worktree")
    diff.add_argument("--file", help="limit the diff to one path")
    diff.set_defaults(handler=show_diff)

    conflicts = subparsers.add_parser("conflicts", help="list conflict chunks in a file")
    conflicts.add_argument("path", help="file containing conflict markers")
    conflicts.set_defaults(handler=show_conflicts)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.handler(args)
    except GitDiffEngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
