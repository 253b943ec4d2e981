"""Working-tree pre-flight checks run before a release."""

from __future__ import annotations

import logging
import typing as typ

from slipway.errors import ReleaseError

if typ.TYPE_CHECKING:
    from slipway.vcs import Repository

LOGGER = logging.getLogger(__name__)

_DETACHED_HEAD = "(detached HEAD)"


class WrongBranchError(ReleaseError):
    """Raised when the release is attempted away from the release branch."""

    def __init__(self, expected: str, actual: str) -> None:
        """Name both the required and the checked-out branch."""
        current = actual or _DETACHED_HEAD
        super().__init__(f"must be on {expected} branch (currently on {current})")
        self.expected = expected
        self.actual = actual


class DirtyTreeError(ReleaseError):
    """Raised when the working tree has uncommitted changes."""

    def __init__(self, paths: typ.Sequence[str]) -> None:
        """Record the offending ``paths`` for display."""
        super().__init__("working directory not clean")
        self.paths = tuple(paths)

    def describe_paths(self) -> str:
        """Return the offending paths, one per indented line."""
        return "\n".join(f"  {path}" for path in self.paths)


def verify_release_branch(repository: Repository, expected: str) -> None:
    """Ensure ``repository`` has ``expected`` checked out."""
    actual = repository.current_branch()
    if actual != expected:
        raise WrongBranchError(expected, actual)
    LOGGER.debug("On release branch %s", expected)


def verify_clean_working_tree(repository: Repository) -> None:
    """Ensure ``repository`` reports no tracked or untracked changes."""
    paths = repository.changed_paths()
    if paths:
        raise DirtyTreeError(paths)


def run_preflight_checks(repository: Repository, *, branch: str) -> None:
    """Run the branch check followed by the clean-tree check."""
    verify_release_branch(repository, branch)
    verify_clean_working_tree(repository)


__all__ = [
    "DirtyTreeError",
    "WrongBranchError",
    "run_preflight_checks",
    "verify_clean_working_tree",
    "verify_release_branch",
]
