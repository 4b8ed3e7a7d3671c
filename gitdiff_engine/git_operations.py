"""Git operations that feed diff text in and write resolved conflicts back."""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import structlog
from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .conflict_parser import ConflictChunk
from .conflict_resolution import ConflictFile, apply_resolutions, unresolved_chunks
from .errors import GitOperationError, MergeConflictError, UnresolvedConflictsError
from .models import DiffHunk
from .patch_builder import create_hunk_patch, create_line_patch

logger = structlog.get_logger(__name__)


def open_repository(repo_path: str) -> Repo:
    """Open an existing repository, raising GitOperationError if there is none."""
    try:
        return Repo(repo_path)
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        raise GitOperationError("open repository", f"'{repo_path}' is not a Git repository") from exc


@contextmanager
def _git_command(command: str) -> Iterator[None]:
    try:
        yield
    except GitCommandError as exc:
        stderr = (exc.stderr or "").strip()
        logger.warning("git_command_failed", command=command, status=exc.status, stderr=stderr)
        raise GitOperationError(command, stderr or str(exc), stderr=stderr) from exc


def get_commit_diff(repo_path: str, commit_sha: str, parent_commit: Optional[str] = None) -> str:
    """
    Get the git diff for a specific commit.

    Args:
        repo_path: Path to the git repository
        commit_sha: SHA of the commit to get diff for
        parent_commit: SHA of parent commit. If None, uses commit^

    Returns:
        Raw git diff output as string
    """
    repo = open_repository(repo_path)

    with _git_command("git diff"):
        if parent_commit is None:
            commit = repo.commit(commit_sha)
            if commit.parents:
                return repo.git.diff(commit.parents[0].hexsha, commit_sha)
            # Root commit - show all files as added
            return repo.git.show(commit_sha, format="")
        return repo.git.diff(parent_commit, commit_sha)


def get_working_diff(repo_path: str, file_path: Optional[str] = None, staged: bool = False) -> str:
    """
    Get the unstaged (or, with staged=True, the staged) diff of the working tree.

    Args:
        repo_path: Path to the git repository
        file_path: Limit the diff to this path
        staged: Diff the index against HEAD instead of the worktree against the index

    Returns:
        Raw git diff output as string
    """
    repo = open_repository(repo_path)
    args = []
    if staged:
        args.append("--cached")
    if file_path is not None:
        args.extend(["--", file_path])

    with _git_command("git diff"):
        return repo.git.diff(*args)


def get_branch_diff(repo_path: str, base: str, head: str) -> str:
    """Get the diff between two refs."""
    repo = open_repository(repo_path)
    with _git_command("git diff"):
        return repo.git.diff(base, head)


def merge_branch(repo_path: str, branch: str, no_ff: bool = False) -> None:
    """
    Merge a branch into the current one.

    Raises:
        MergeConflictError: If the merge stopped with conflicts in the worktree
        GitOperationError: If the merge failed for any other reason
    """
    repo = open_repository(repo_path)
    args = ["--no-ff"] if no_ff else []
    args.append(branch)

    try:
        repo.git.merge(*args)
    except GitCommandError as exc:
        output = f"{exc.stdout or ''}{exc.stderr or ''}"
        if "CONFLICT" in output:
            logger.info("merge_conflicted", branch=branch)
            raise MergeConflictError("git merge", output.strip(), stderr=exc.stderr) from exc
        raise GitOperationError("git merge", (exc.stderr or str(exc)).strip(), stderr=exc.stderr) from exc


def merge_abort(repo_path: str) -> None:
    """Abort the merge in progress."""
    repo = open_repository(repo_path)
    with _git_command("git merge --abort"):
        repo.git.merge("--abort")


def list_conflicted_files(repo_path: str) -> List[str]:
    """Paths that have unmerged entries in the index, sorted."""
    repo = open_repository(repo_path)
    return sorted(str(path) for path in repo.index.unmerged_blobs())


def _unmerged_stages(repo: Repo, path: str) -> List[int]:
    for entry_path, entries in repo.index.unmerged_blobs().items():
        if str(entry_path) == path:
            return sorted(stage for stage, _ in entries)
    return []


def _show_stage(repo: Repo, stage: int, path: str) -> str:
    with _git_command("git show"):
        return repo.git.show(f":{stage}:{path}", strip_newline_in_stdout=False)


def load_conflict_file(repo_path: str, path: str) -> ConflictFile:
    """
    Load the ours, theirs and base versions git keeps for a conflicted path.

    Args:
        repo_path: Path to the git repository
        path: Repository-relative path of the conflicted file

    Returns:
        ConflictFile with base_content None when the file has no common ancestor.
        A side that deleted the file has empty content.

    Raises:
        GitOperationError: If the path is not conflicted or git cannot read a stage
    """
    repo = open_repository(repo_path)
    stages = _unmerged_stages(repo, path)
    if not stages:
        raise GitOperationError("git show", f"'{path}' has no unmerged index entries")

    return ConflictFile(
        path=path,
        ours_content=_show_stage(repo, 2, path) if 2 in stages else "",
        theirs_content=_show_stage(repo, 3, path) if 3 in stages else "",
        base_content=_show_stage(repo, 1, path) if 1 in stages else None,
    )


def read_conflicted_content(repo_path: str, path: str) -> str:
    """Read the working tree copy of a file, markers and line endings included."""
    with open(Path(repo_path) / path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_resolved_file(repo_path: str, path: str, content: str, stage: bool = True) -> None:
    """
    Write merged content to the working tree and optionally stage it.

    Staging a previously conflicted path marks it resolved in the index.
    """
    repo = open_repository(repo_path)
    target = Path(repo_path) / path
    # newline="" writes CRLF and LF exactly as the merged text has them
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    if stage:
        with _git_command("git add"):
            repo.git.add("--", path)
    logger.info("resolved_file_written", path=path, staged=stage)


def resolve_conflicted_file(repo_path: str, path: str, chunks: Iterable[ConflictChunk],
                            original: Optional[str] = None, require_complete: bool = True,
                            stage: bool = True) -> str:
    """
    Apply chunk resolutions to a conflicted file, write it back and stage it.

    Args:
        repo_path: Path to the git repository
        path: Repository-relative path of the conflicted file
        chunks: Chunks parsed from the file, with their resolutions
        original: Content the chunks were parsed from. Read from disk if None.
        require_complete: Refuse to write while any chunk is unresolved
        stage: Stage the written file

    Returns:
        The merged content that was written
    """
    chunks = list(chunks)
    if require_complete:
        remaining = unresolved_chunks(chunks)
        if remaining:
            raise UnresolvedConflictsError(path, len(remaining))

    if original is None:
        original = read_conflicted_content(repo_path, path)

    merged = apply_resolutions(original, chunks)
    write_resolved_file(repo_path, path, merged, stage=stage)
    return merged


def apply_patch(repo_path: str, patch: str, cached: bool = False, reverse: bool = False) -> None:
    """
    Apply a patch with ``git apply`` to the index (cached) or the working tree.

    Args:
        repo_path: Path to the git repository
        patch: Unified diff text
        cached: Apply to the index instead of the working tree
        reverse: Apply the patch in reverse
    """
    repo = open_repository(repo_path)
    args = ["--unidiff-zero", "--verbose"]
    if cached:
        args.append("--cached")
    if reverse:
        args.append("--reverse")

    with tempfile.NamedTemporaryFile("w", suffix=".patch", prefix="gitdiff_engine_",
                                     encoding="utf-8", newline="", delete=False) as f:
        f.write(patch)
        patch_file = f.name

    try:
        with _git_command("git apply"):
            repo.git.apply(*args, patch_file)
    finally:
        os.unlink(patch_file)


def stage_hunk(repo_path: str, file_path: str, hunk: DiffHunk) -> None:
    """Stage an entire hunk from an unstaged diff."""
    apply_patch(repo_path, create_hunk_patch(hunk, file_path), cached=True)


def unstage_hunk(repo_path: str, file_path: str, hunk: DiffHunk) -> None:
    """Unstage an entire hunk from a staged diff."""
    apply_patch(repo_path, create_hunk_patch(hunk, file_path), cached=True, reverse=True)


def discard_hunk(repo_path: str, file_path: str, hunk: DiffHunk) -> None:
    """Revert an entire hunk of an unstaged diff in the working tree."""
    apply_patch(repo_path, create_hunk_patch(hunk, file_path, inverse=True))


def stage_line(repo_path: str, file_path: str, hunk: DiffHunk, line_index: int) -> None:
    """Stage a single added or deleted line from an unstaged diff."""
    apply_patch(repo_path, create_line_patch(hunk, line_index, file_path), cached=True)


def unstage_line(repo_path: str, file_path: str, hunk: DiffHunk, line_index: int) -> None:
    """Unstage a single added or deleted line from a staged diff."""
    apply_patch(repo_path, create_line_patch(hunk, line_index, file_path), cached=True, reverse=True)


def discard_line(repo_path: str, file_path: str, hunk: DiffHunk, line_index: int) -> None:
    """Revert a single added or deleted line of an unstaged diff in the working tree."""
    apply_patch(repo_path, create_line_patch(hunk, line_index, file_path, inverse=True))
