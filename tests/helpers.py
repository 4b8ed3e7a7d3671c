"""Shared helpers for the test suite: verbose result reporting and throwaway git repositories."""

import logging
import logging.config
import os
import shutil
from pathlib import Path

import structlog
from git import Repo


class TestResult:
    """Helper class to capture and format test results."""

    def __init__(self, test_name, expected, actual, passed, error=None):
        self.test_name = test_name
        self.expected = expected
        self.actual = actual
        self.passed = passed
        self.error = error

    def to_dict(self):
        return {
            "test_name": self.test_name,
            "expected": self.expected,
            "actual": self.actual,
            "passed": self.passed,
            "error": str(self.error) if self.error else None
        }


class VerboseTestReporter:
    """Handles verbose test output when PYTEST_VERBOSE=true."""
    def __init__(self):
        self.verbose = os.environ.get('PYTEST_VERBOSE', 'false').lower() == 'true'
        self.results = []

    def record_result(self, test_name, expected, actual, passed, error=None):
        result = TestResult(test_name, expected, actual, passed, error)
        self.results.append(result)

        if self.verbose:
            self._print_result(result)

    def _print_result(self, result):
        print(f"\n{'='*60}")
        print(f"TEST: {result.test_name}")
        print(f"STATUS: {'PASS' if result.passed else 'FAIL'}")
        print(f"{'='*60}")

        if not result.passed and result.error:
            print(f"ERROR: {result.error}")

        print(f"EXPECTED: {result.expected}")
        print(f"ACTUAL:   {result.actual}")
        print(f"{'='*60}\n")


def safe_cleanup(temp_dir):
    """Remove a temporary directory, ignoring files git still holds open."""
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir, ignore_errors=True)


def init_repo(temp_dir, conflict_style=None):
    """Create an empty repository with a committer identity configured."""
    repo = Repo.init(temp_dir)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
        if conflict_style:
            config.set_value("merge", "conflictStyle", conflict_style)
    return repo


def commit_file(repo, relative_path, content, message):
    """Write a file in the working tree, stage it and commit."""
    path = Path(repo.working_tree_dir) / relative_path
    path.write_text(content)
    repo.index.add([str(path)])
    return repo.index.commit(message)


def create_conflicting_branches(temp_dir, conflict_style=None):
    """
    Create a repository where merging ``feature`` into the current branch conflicts.

    greeting.txt starts as "hello\\nworld\\n"; each branch rewrites the second line.

    Returns:
        The repository and the name of the checked-out branch
    """
    repo = init_repo(temp_dir, conflict_style)
    commit_file(repo, "greeting.txt", "hello\nworld\n", "base")
    main_branch = repo.active_branch.name

    repo.git.checkout("-b", "feature")
    commit_file(repo, "greeting.txt", "hello\nfeature world\n", "feature change")

    repo.git.checkout(main_branch)
    commit_file(repo, "greeting.txt", "hello\nmain world\n", "main change")
    return repo, main_branch


def reset_logging():
    """Undo configure_logging so later tests do not write to a closed capture stream."""
    structlog.reset_defaults()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "root": {"handlers": [], "level": "WARNING"},
        "loggers": {"git": {"handlers": [], "level": "NOTSET", "propagate": True}},
    })
