"""Version-control queries and writes used by the release pipeline."""

from __future__ import annotations

import logging
import typing as typ

import msgspec
from cuprum import scoped, sh
from plumbum import local
from plumbum.commands.processes import CommandNotFound

from slipway.errors import ReleaseError
from slipway.utils import GIT, SLIPWAY_CATALOGUE
from slipway.utils.process import coerce_text, format_command, log_command_invocation

if typ.TYPE_CHECKING:
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

_LOG_FORMAT = "--format=%h%x09%s"
_PORCELAIN_PATH_OFFSET = 3


class VersionControlError(ReleaseError):
    """Raised when a git invocation fails."""

    def __init__(
        self,
        command: typ.Sequence[str],
        exit_code: int | None,
        detail: str,
    ) -> None:
        """Summarise the failing ``command`` using git's own ``detail``."""
        rendered = format_command(command)
        if exit_code is None:
            message = f"{rendered} could not be executed"
        else:
            message = f"{rendered} failed with exit code {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.command = tuple(command)
        self.exit_code = exit_code
        self.detail = detail


class Commit(msgspec.Struct, frozen=True, kw_only=True):
    """A commit as reported by ``git log``: abbreviated hash and subject."""

    sha: str
    subject: str

    def oneline(self) -> str:
        """Return the ``<sha> <subject>`` rendering used in console output."""
        return f"{self.sha} {self.subject}"


class Repository(typ.Protocol):
    """Version-control operations the release pipeline depends on."""

    def current_branch(self) -> str:
        """Return the checked-out branch name, or ``""`` when detached."""

    def changed_paths(self) -> tuple[str, ...]:
        """Return tracked and untracked paths with uncommitted changes."""

    def latest_tag(self) -> str | None:
        """Return the most recent reachable tag, if any."""

    def commits(self, revision_range: str) -> tuple[Commit, ...]:
        """Return commits in ``revision_range``, newest first."""

    def stage(self, paths: typ.Sequence[str]) -> None:
        """Stage ``paths`` for the next commit."""

    def commit(self, message: str) -> None:
        """Create a commit from the staged changes."""

    def create_annotated_tag(self, name: str, message: str) -> None:
        """Create an annotated tag ``name`` pointing at ``HEAD``."""


def revision_range(tag: str | None) -> str:
    """Return the log range after ``tag``, or the whole history without one."""
    return "HEAD" if tag is None else f"{tag}..HEAD"


def parse_porcelain_paths(output: str) -> tuple[str, ...]:
    """Return the paths listed in ``git status --porcelain`` ``output``."""
    return tuple(
        line[_PORCELAIN_PATH_OFFSET:]
        for line in output.splitlines()
        if line.strip()
    )


def parse_log_output(output: str) -> tuple[Commit, ...]:
    """Parse tab separated ``<sha>\\t<subject>`` lines emitted by ``git log``."""
    commits: list[Commit] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        sha, _, subject = line.partition("\t")
        commits.append(Commit(sha=sha.strip(), subject=subject.strip()))
    return tuple(commits)


class GitRepository:
    """:class:`Repository` backed by the ``git`` executable."""

    def __init__(self, root: Path) -> None:
        """Run every git command from ``root``."""
        self.root = root

    def _run(self, *args: str) -> tuple[int, str, str]:
        """Execute ``git`` with ``args`` and return the raw exit status and output."""
        with scoped(allowlist=SLIPWAY_CATALOGUE.allowlist):
            command = sh.make(GIT, catalogue=SLIPWAY_CATALOGUE)(*args)
        argv = tuple(command.argv_with_program)
        log_command_invocation(LOGGER, argv, self.root)
        program, *arguments = argv
        try:
            executable = local[program]
        except CommandNotFound as exc:
            raise VersionControlError(
                argv, None, "the 'git' executable could not be located"
            ) from exc
        exit_code, stdout, stderr = executable.run(
            arguments, retcode=None, cwd=str(self.root)
        )
        return exit_code, coerce_text(stdout), coerce_text(stderr)

    def _run_checked(self, *args: str) -> str:
        """Execute ``git`` with ``args`` and return stdout, raising on failure."""
        exit_code, stdout, stderr = self._run(*args)
        if exit_code != 0:
            raise VersionControlError(
                ("git", *args), exit_code, (stderr or stdout).strip()
            )
        return stdout

    def current_branch(self) -> str:
        """Return the checked-out branch name, or ``""`` when detached."""
        return self._run_checked("branch", "--show-current").strip()

    def changed_paths(self) -> tuple[str, ...]:
        """Return tracked and untracked paths with uncommitted changes."""
        return parse_porcelain_paths(self._run_checked("status", "--porcelain"))

    def latest_tag(self) -> str | None:
        """Return the most recent reachable tag, if any."""
        exit_code, stdout, _stderr = self._run("describe", "--tags", "--abbrev=0")
        if exit_code != 0:
            LOGGER.debug("No reachable tag found; using the whole history")
            return None
        return stdout.strip() or None

    def commits(self, revision_range: str) -> tuple[Commit, ...]:
        """Return commits in ``revision_range``, newest first."""
        return parse_log_output(
            self._run_checked("log", revision_range, "--no-decorate", _LOG_FORMAT)
        )

    def stage(self, paths: typ.Sequence[str]) -> None:
        """Stage ``paths`` for the next commit."""
        self._run_checked("add", "--", *paths)

    def commit(self, message: str) -> None:
        """Create a commit from the staged changes."""
        self._run_checked("commit", "-m", message)

    def create_annotated_tag(self, name: str, message: str) -> None:
        """Create an annotated tag ``name`` pointing at ``HEAD``."""
        self._run_checked("tag", "-a", name, "-m", message)


__all__ = [
    "Commit",
    "GitRepository",
    "Repository",
    "VersionControlError",
    "parse_log_output",
    "parse_porcelain_paths",
    "revision_range",
]
