"""Pytest configuration for the slipway test-suite."""

from __future__ import annotations

import json
import os
import textwrap
import typing as typ
from pathlib import Path

import pytest

from tests.helpers import git_helpers


@pytest.fixture
def repo_root() -> Path:
    """Return the source checkout root directory."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _restore_repo_root_env() -> typ.Iterator[None]:
    """Ensure tests do not leak ``SLIPWAY_REPO_ROOT`` between runs."""
    from slipway.utils.path import REPO_ROOT_ENV_VAR

    original = os.environ.get(REPO_ROOT_ENV_VAR)
    try:
        yield
    finally:
        if original is None:
            os.environ.pop(REPO_ROOT_ENV_VAR, None)
        else:
            os.environ[REPO_ROOT_ENV_VAR] = original


@pytest.fixture
def write_config(tmp_path: Path) -> typ.Callable[[str], Path]:
    """Return a helper that writes ``slipway.toml`` into ``tmp_path``."""
    from slipway import config as config_module

    def _write(body: str) -> Path:
        config_path = tmp_path / config_module.CONFIG_FILENAME
        config_path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def write_package_json(tmp_path: Path) -> typ.Callable[..., Path]:
    """Return a helper that writes a ``package.json`` into ``tmp_path``."""

    def _write(version: str = "0.9.0", **extra: object) -> Path:
        payload = {"name": "demo", "version": version, **extra}
        path = tmp_path / "package.json"
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def git_project(tmp_path: Path) -> Path:
    """Return a committed git repository on ``main`` at version 0.9.0."""
    project = tmp_path / "project"
    project.mkdir()
    git_helpers.git_init(project)
    (project / "package.json").write_text(
        '{\n  "name": "demo",\n  "version": "0.9.0"\n}\n', encoding="utf-8"
    )
    (project / "CHANGELOG.md").write_text(
        "# Changelog\n\n## [0.9.0] - 2024-01-01\n\n- Initial release\n",
        encoding="utf-8",
    )
    git_helpers.git_commit_all(project, "chore: initial import")
    git_helpers.git_tag(project, "v0.9.0")
    return project
