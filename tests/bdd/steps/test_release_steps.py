"""BDD steps driving ``slipway`` against throwaway git repositories."""

from __future__ import annotations

import json
import shlex
import subprocess
import sys
import typing as typ

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from tests.helpers import git_helpers

if typ.TYPE_CHECKING:
    from pathlib import Path

pytestmark = git_helpers.requires_git

scenarios("../features/release.feature")


def _run_cli(
    repo_root: Path,
    project: Path,
    arguments: typ.Sequence[str],
    answers: str,
) -> dict[str, typ.Any]:
    command = [
        sys.executable,
        "-m",
        "slipway.cli",
        "--repo-root",
        str(project),
        *arguments,
    ]
    completed = subprocess.run(  # noqa: S603
        command,
        check=False,
        cwd=str(repo_root),
        capture_output=True,
        text=True,
        input=answers,
    )
    return {
        "returncode": completed.returncode,
        "stdout": completed.stdout,
        "stderr": completed.stderr,
        "project": project,
    }


def _changelog_section(text: str, title: str) -> str:
    """Return the body of the first ``### title`` subsection in ``text``."""
    marker = f"### {title}\n"
    start = text.find(marker)
    assert start != -1, f"no {title!r} section in changelog:\n{text}"
    body = text[start + len(marker) :]
    end = body.find("\n### ")
    return body if end == -1 else body[:end]


@given(parsers.parse('a project released as "{tag}"'), target_fixture="project")
def given_released_project(git_project: Path, tag: str) -> Path:
    """Provide a committed project whose latest tag is ``tag``."""
    assert tag in git_helpers.git_tags(git_project)
    return git_project


@given(parsers.parse('a commit "{subject}"'))
def given_commit(project: Path, subject: str) -> None:
    """Record an empty commit with ``subject`` after the last release."""
    git_helpers.git_commit_all(project, subject)


@given(parsers.parse('an untracked file "{name}"'))
def given_untracked_file(project: Path, name: str) -> None:
    """Leave ``name`` uncommitted in the working tree."""
    (project / name).write_text("scratch\n", encoding="utf-8")


@given(parsers.parse('the branch "{branch}" is checked out'))
def given_branch_checked_out(project: Path, branch: str) -> None:
    """Switch the project to a new ``branch``."""
    git_helpers.run_git(project, "checkout", "--quiet", "-b", branch)


@when(
    parsers.parse('I run slipway with "{arguments}" answering "{answers}"'),
    target_fixture="cli_run",
)
def when_run_slipway(
    repo_root: Path, project: Path, arguments: str, answers: str
) -> dict[str, typ.Any]:
    """Run the CLI, feeding one comma separated answer per prompt."""
    replies = "".join(f"{answer}\n" for answer in answers.split(",") if answer)
    return _run_cli(repo_root, project, shlex.split(arguments), replies)


@when("I run slipway without arguments", target_fixture="cli_run")
def when_run_slipway_bare(repo_root: Path, project: Path) -> dict[str, typ.Any]:
    """Run the CLI with only the repository root."""
    return _run_cli(repo_root, project, (), "")


@then(parsers.parse("the CLI exits with code {expected:d}"))
def then_cli_exit_code(cli_run: dict[str, typ.Any], expected: int) -> None:
    """Assert that the CLI terminated with ``expected`` exit code."""
    assert cli_run["returncode"] == expected, cli_run["stderr"]


@then(parsers.parse('the stdout contains "{expected}"'))
def then_stdout_contains(cli_run: dict[str, typ.Any], expected: str) -> None:
    """Assert that ``expected`` appears in the captured stdout output."""
    assert expected in cli_run["stdout"]


@then(parsers.parse('the stderr contains "{expected}"'))
def then_stderr_contains(cli_run: dict[str, typ.Any], expected: str) -> None:
    """Assert that ``expected`` appears in the captured stderr output."""
    assert expected in cli_run["stderr"]


@then(parsers.parse('the package version is "{version}"'))
def then_package_version(project: Path, version: str) -> None:
    """Validate the ``version`` recorded in ``package.json``."""
    payload = json.loads((project / "package.json").read_text(encoding="utf-8"))
    assert payload["version"] == version


@then(parsers.parse('the changelog lists "{bullet}" under "{title}"'))
def then_changelog_lists(project: Path, bullet: str, title: str) -> None:
    """Assert that ``bullet`` sits in the newest entry's ``title`` section."""
    text = (project / "CHANGELOG.md").read_text(encoding="utf-8")
    assert bullet in _changelog_section(text, title).splitlines()


@then(parsers.parse('the changelog does not mention "{fragment}"'))
def then_changelog_omits(project: Path, fragment: str) -> None:
    """Assert that ``fragment`` is absent from the changelog."""
    text = (project / "CHANGELOG.md").read_text(encoding="utf-8")
    assert fragment not in text


@then(parsers.parse('the head commit subject is "{subject}"'))
def then_head_subject(project: Path, subject: str) -> None:
    """Validate the subject of the release commit."""
    assert git_helpers.git_head_subject(project) == subject


@then(parsers.parse('the tag "{name}" is annotated'))
def then_tag_annotated(project: Path, name: str) -> None:
    """Assert that ``name`` exists as an annotated tag."""
    assert git_helpers.git_tag_type(project, name) == "tag"


@then(parsers.parse('no tag "{name}" exists'))
def then_tag_absent(project: Path, name: str) -> None:
    """Assert that ``name`` was not created."""
    assert name not in git_helpers.git_tags(project)


@then("the working tree is clean")
def then_working_tree_clean(project: Path) -> None:
    """Assert that git reports no uncommitted changes."""
    if not git_helpers.git_is_clean(project):
        pytest.fail(git_helpers.run_git(project, "status", "--porcelain"))
