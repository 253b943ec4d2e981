"""Command-line interface for the :mod:`slipway` release tool."""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from contextlib import contextmanager
from pathlib import Path

from cyclopts import App, Parameter

from . import commands, config
from .commands.release import USAGE, UsageError
from .commands.release_preflight import DirtyTreeError
from .errors import ReleaseError
from .prompt import UserAbortError
from .utils import normalise_repo_root
from .utils.path import REPO_ROOT_ENV_VAR

REPO_ROOT_REQUIRED_MESSAGE = "--repo-root requires a value"
_REPO_ROOT_PARAMETER = Parameter(
    name="repo-root",
    env_var=REPO_ROOT_ENV_VAR,
    help="Path to the repository being released.",
)
RepoRootOption = typ.Annotated[Path, _REPO_ROOT_PARAMETER]

_BUMP_PARAMETER = Parameter(
    help=(
        "Version bump: 'patch', 'minor', 'major', or an explicit version "
        "used verbatim."
    ),
)
BumpArgument = typ.Annotated[str, _BUMP_PARAMETER]

_DRY_RUN_PARAMETER = Parameter(
    name="dry-run",
    help="Preview the release and changelog entry without writing anything.",
)
DryRunFlag = typ.Annotated[bool, _DRY_RUN_PARAMETER]

LOG_LEVEL_ENV_VAR = "SLIPWAY_LOG_LEVEL"
_DEFAULT_LOG_LEVEL = logging.INFO
_LOG_FORMAT = "%(levelname)s: %(message)s"
_SLIPWAY_HANDLER_NAME = "slipway-cli-handler"
_LOG_LEVEL_ALIASES: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

USAGE_EXIT_CODE = 2
FAILURE_EXIT_CODE = 1
INTERRUPTED_EXIT_CODE = 130

app = App(help="Bump the version, update the changelog, and tag a release.")


def _validate_repo_root_value(value: str) -> str:
    """Ensure ``value`` is usable as a repository path."""
    if not value or value.startswith("-"):
        raise SystemExit(REPO_ROOT_REQUIRED_MESSAGE)
    return value


def _parse_repo_root_flag(tokens: typ.Sequence[str], index: int) -> tuple[str, int]:
    """Parse ``--repo-root <path>`` form starting at ``index``."""
    try:
        candidate = tokens[index + 1]
    except IndexError as err:
        raise SystemExit(REPO_ROOT_REQUIRED_MESSAGE) from err
    repo_root = _validate_repo_root_value(candidate)
    return repo_root, index + 2


def _parse_repo_root_equals(argument: str, index: int) -> tuple[str, int]:
    """Parse ``--repo-root=<path>`` form for ``argument``."""
    candidate = argument.partition("=")[2]
    repo_root = _validate_repo_root_value(candidate)
    return repo_root, index + 1


def _extract_repo_root_override(
    tokens: typ.Sequence[str],
) -> tuple[str | None, list[str]]:
    """Split ``--repo-root`` from CLI tokens.

    The flag can appear in either ``--repo-root <path>`` or
    ``--repo-root=<path>`` form. The last occurrence wins. The returned token
    list can be passed directly to :func:`cyclopts.App.__call__`.
    """
    repo_root: str | None = None
    remainder: list[str] = []
    index = 0
    while index < len(tokens):
        current_argument = tokens[index]
        if current_argument == "--repo-root":
            repo_root, index = _parse_repo_root_flag(tokens, index)
            continue
        if current_argument.startswith("--repo-root="):
            repo_root, index = _parse_repo_root_equals(current_argument, index)
            continue
        remainder.append(current_argument)
        index += 1
    return repo_root, remainder


def _resolve_log_level(value: str | None) -> int:
    """Return the configured log level or :data:`_DEFAULT_LOG_LEVEL`."""
    if value is None:
        return _DEFAULT_LOG_LEVEL
    candidate = value.strip()
    if not candidate:
        return _DEFAULT_LOG_LEVEL
    level = _LOG_LEVEL_ALIASES.get(candidate.upper())
    if level is None:
        choices = ", ".join(sorted(_LOG_LEVEL_ALIASES))
        message = (
            f"Invalid {LOG_LEVEL_ENV_VAR} value {value!r}; expected one of: {choices}"
        )
        raise SystemExit(message)
    return level


def _configure_logging(stream: typ.TextIO | None = None) -> None:
    """Configure root logging so command execution is visible."""
    level = _resolve_log_level(os.environ.get(LOG_LEVEL_ENV_VAR))
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    handler = next(
        (
            existing
            for existing in root_logger.handlers
            if getattr(existing, "name", "") == _SLIPWAY_HANDLER_NAME
        ),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream)
        handler.name = _SLIPWAY_HANDLER_NAME
        root_logger.addHandler(handler)
    elif stream is not None:
        handler.stream = stream
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))


@contextmanager
def _repo_root_env(value: Path) -> typ.Iterator[None]:
    """Temporarily set :data:`REPO_ROOT_ENV_VAR` to ``value``."""
    previous = os.environ.get(REPO_ROOT_ENV_VAR)
    os.environ[REPO_ROOT_ENV_VAR] = str(value)
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop(REPO_ROOT_ENV_VAR, None)
        else:
            os.environ[REPO_ROOT_ENV_VAR] = previous


def _dispatch_and_print(tokens: typ.Sequence[str]) -> int:
    """Execute the Cyclopts app and print command results."""
    try:
        result = app(tokens)
    except SystemExit as err:
        code = err.code
        if code is None:
            return 0
        if isinstance(code, int):
            return code
        print(code, file=sys.stderr)
        return FAILURE_EXIT_CODE
    if isinstance(result, int):
        return result
    if result is not None:
        print(result)
    return 0


def _report_release_error(exc: ReleaseError) -> int:
    """Print ``exc`` to stderr and return the matching exit status."""
    if isinstance(exc, UsageError):
        print(USAGE, file=sys.stderr)
        return USAGE_EXIT_CODE
    if isinstance(exc, UserAbortError):
        print(exc, file=sys.stderr)
        return FAILURE_EXIT_CODE
    if isinstance(exc, config.ConfigurationError):
        print(f"Configuration error: {exc}", file=sys.stderr)
        return FAILURE_EXIT_CODE
    print(f"Error: {exc}", file=sys.stderr)
    if isinstance(exc, DirtyTreeError) and exc.paths:
        print(exc.describe_paths(), file=sys.stderr)
    return FAILURE_EXIT_CODE


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Entry point for ``slipway`` and ``python -m slipway.cli``."""
    try:
        if argv is None:
            argv = sys.argv[1:]
        _configure_logging()
        repo_root_override, remaining = _extract_repo_root_override(list(argv))
        repo_root = normalise_repo_root(repo_root_override)
        try:
            configuration = config.load_configuration(repo_root)
        except config.ConfigurationError as exc:
            return _report_release_error(exc)
        try:
            with (
                _repo_root_env(repo_root),
                config.use_configuration(configuration),
            ):
                return _dispatch_and_print(remaining)
        except ReleaseError as exc:
            return _report_release_error(exc)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return INTERRUPTED_EXIT_CODE
    except Exception as exc:  # noqa: BLE001 - fallback guard for CLI entry point
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return FAILURE_EXIT_CODE


@app.default
def release(
    bump: BumpArgument | None = None,
    *,
    repo_root: RepoRootOption | None = None,
    dry_run: DryRunFlag = False,
) -> str:
    """Release the repository: bump, update the changelog, commit and tag."""
    if bump is None:
        raise UsageError
    resolved = normalise_repo_root(repo_root)
    return commands.release.run(
        resolved,
        bump,
        options=commands.release.ReleaseOptions(dry_run=dry_run),
    )


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    raise SystemExit(main())
