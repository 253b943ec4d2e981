"""Release command implementation.

The release runs as one linear sequence: branch and clean-tree checks,
version calculation, a first confirmation, commit collection, changelog
preview, a second confirmation, the metadata and changelog writes, and
finally the release commit and annotated tag. Any failure stops the run;
nothing already written is rolled back.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import sys
import typing as typ

from slipway import config as config_module
from slipway.changelog import (
    ChangelogEntry,
    compare_url,
    summarise_commits,
    write_changelog,
)
from slipway.commands.release_preflight import run_preflight_checks
from slipway.errors import ReleaseError
from slipway.metadata import read_version, write_version
from slipway.prompt import TerminalConfirmation, require_confirmation
from slipway.utils import normalise_repo_root
from slipway.vcs import GitRepository, revision_range
from slipway.versioning import BUMP_KEYWORDS, bump_version

if typ.TYPE_CHECKING:
    from pathlib import Path

    from slipway.config import SlipwayConfig
    from slipway.prompt import ConfirmationProvider
    from slipway.vcs import Commit, Repository

LOGGER = logging.getLogger(__name__)

USAGE = f"Usage: slipway [{'|'.join(reversed(BUMP_KEYWORDS))}|<version>]"


class UsageError(ReleaseError):
    """Raised when the bump argument is missing."""

    def __init__(self) -> None:
        """Initialise the error with the usage line."""
        super().__init__(USAGE)


@dc.dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Runtime collaborators and switches for a release run.

    Parameters
    ----------
    dry_run:
        Stop after the changelog preview without writing files or creating
        the release commit and tag.
    configuration:
        Optional :class:`~slipway.config.SlipwayConfig` to use instead of the
        active or on-disk configuration.
    repository:
        Version-control adapter; defaults to :class:`~slipway.vcs.GitRepository`
        rooted at the repository root.
    confirmation:
        Provider answering both confirmation prompts; defaults to reading the
        terminal.
    stdout:
        Stream receiving progress output and the changelog preview.
    today:
        Release date recorded in the changelog; defaults to the local date.

    """

    dry_run: bool = False
    configuration: SlipwayConfig | None = None
    repository: Repository | None = None
    confirmation: ConfirmationProvider | None = None
    stdout: typ.TextIO | None = None
    today: dt.date | None = None


@dc.dataclass(frozen=True, slots=True)
class _ReleaseContext:
    """Resolved collaborators for a single release run."""

    root_path: Path
    configuration: SlipwayConfig
    repository: Repository
    confirmation: ConfirmationProvider
    stdout: typ.TextIO
    today: dt.date
    dry_run: bool


@dc.dataclass(frozen=True, slots=True)
class ReleasePlan:
    """Versions and changelog text computed before any file is written."""

    current_version: str
    new_version: str
    tag: str
    previous_tag: str | None
    commits: tuple[Commit, ...]
    entry: str


def _ensure_configuration(
    configuration: SlipwayConfig | None, repo_root: Path
) -> SlipwayConfig:
    """Return the active configuration, loading it from disk when required."""
    if configuration is not None:
        return configuration
    try:
        return config_module.current_configuration()
    except config_module.ConfigurationNotLoadedError:
        return config_module.load_configuration(repo_root)


def _initialise_context(
    repo_root: Path | str | None, options: ReleaseOptions | None
) -> _ReleaseContext:
    resolved = ReleaseOptions() if options is None else options
    root_path = normalise_repo_root(repo_root)
    return _ReleaseContext(
        root_path=root_path,
        configuration=_ensure_configuration(resolved.configuration, root_path),
        repository=resolved.repository or GitRepository(root_path),
        confirmation=resolved.confirmation or TerminalConfirmation(),
        stdout=resolved.stdout or sys.stdout,
        today=resolved.today or dt.date.today(),  # noqa: DTZ011 - local release date
        dry_run=resolved.dry_run,
    )


def _echo(context: _ReleaseContext, *lines: str) -> None:
    for line in lines:
        print(line, file=context.stdout)
    context.stdout.flush()


def _calculate_versions(context: _ReleaseContext, bump: str) -> tuple[str, str]:
    metadata_path = context.root_path / context.configuration.release.metadata_file
    current = read_version(metadata_path)
    _echo(context, f"Current version: {current}")
    new = bump_version(current, bump)
    _echo(context, f"New version:     {new}", "")
    return current, new


def _collect_commits(
    context: _ReleaseContext,
) -> tuple[str | None, tuple[Commit, ...]]:
    previous_tag = context.repository.latest_tag()
    commits = context.repository.commits(revision_range(previous_tag))
    _echo(context, "", f"Commits since {previous_tag or 'beginning'}:")
    _echo(context, *(commit.oneline() for commit in commits))
    _echo(context, "")
    return previous_tag, commits


def _build_entry(
    context: _ReleaseContext,
    current: str,
    new: str,
    commits: tuple[Commit, ...],
) -> str:
    changelog_config = context.configuration.changelog
    entry = ChangelogEntry(
        version=new,
        date=context.today,
        summary=summarise_commits(commits),
        link=compare_url(changelog_config.compare_url, current, new),
    )
    return entry.render()


def prepare_release(context: _ReleaseContext, bump: str) -> ReleasePlan:
    """Check preconditions and compute the release without writing anything."""
    release_config = context.configuration.release
    run_preflight_checks(context.repository, branch=release_config.branch)
    current, new = _calculate_versions(context, bump)
    tag = release_config.tag_for(new)
    require_confirmation(context.confirmation, f"Release {tag}? [y/N] ")
    previous_tag, commits = _collect_commits(context)
    entry = _build_entry(context, current, new, commits)
    _echo(context, "--- Changelog entry ---", entry, "--- End ---", "")
    return ReleasePlan(
        current_version=current,
        new_version=new,
        tag=tag,
        previous_tag=previous_tag,
        commits=commits,
        entry=entry,
    )


def apply_release(context: _ReleaseContext, plan: ReleasePlan) -> None:
    """Write the metadata and changelog, then create the release commit and tag."""
    release_config = context.configuration.release
    changelog_config = context.configuration.changelog
    LOGGER.info(
        "Releasing %s (%s -> %s) with %d commit(s) since %s",
        plan.tag,
        plan.current_version,
        plan.new_version,
        len(plan.commits),
        plan.previous_tag or "the start of history",
    )
    write_version(
        context.root_path / release_config.metadata_file, plan.new_version
    )
    write_changelog(
        context.root_path / changelog_config.path,
        plan.entry,
        changelog_config.header,
    )
    message = f"release: {plan.tag}"
    context.repository.stage((release_config.metadata_file, changelog_config.path))
    context.repository.commit(message)
    context.repository.create_annotated_tag(plan.tag, message)
    LOGGER.info("Created release commit and tag %s", plan.tag)


def _format_next_steps(configuration: SlipwayConfig, tag: str) -> str:
    release_config = configuration.release
    push = f"git push {release_config.remote} {release_config.branch} --tags"
    steps = [(push, "push to remote")]
    if release_config.publish_command:
        steps.append((release_config.publish_command, "publish package"))
    width = max(len(command) for command, _ in steps)
    lines = [f"Created commit and tag {tag}", "", "Next steps:"]
    lines.extend(
        f"  {command.ljust(width)}   # {description}" for command, description in steps
    )
    if release_config.publish_command:
        lines.extend(
            (
                "",
                "Or both at once:",
                f"  {push} && {release_config.publish_command}",
            )
        )
    return "\n".join(lines)


def run(
    repo_root: Path | str | None,
    bump: str | None,
    *,
    options: ReleaseOptions | None = None,
) -> str:
    """Release the project at ``repo_root`` using the ``bump`` token.

    Returns the success summary with suggested follow-up commands.
    """
    if not bump:
        raise UsageError
    context = _initialise_context(repo_root, options)
    plan = prepare_release(context, bump)
    if context.dry_run:
        return (
            f"Dry run; would release {plan.tag}. "
            "No files changed and no commit or tag created."
        )
    require_confirmation(context.confirmation, "Looks good? [y/N] ")
    apply_release(context, plan)
    return _format_next_steps(context.configuration, plan.tag)


__all__ = [
    "USAGE",
    "ReleaseOptions",
    "ReleasePlan",
    "UsageError",
    "apply_release",
    "prepare_release",
    "run",
]
