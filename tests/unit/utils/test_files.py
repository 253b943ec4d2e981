"""Unit tests for :mod:`slipway.utils.files`."""

from __future__ import annotations

import os
import stat
import typing as typ

import pytest

from slipway.errors import ReleaseError
from slipway.utils import files

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_write_atomic_text_creates_file(tmp_path: Path) -> None:
    """New files are written with the given content and no leftovers."""
    target = tmp_path / "CHANGELOG.md"

    files.write_atomic_text(target, "# Changelog\n")

    assert target.read_text(encoding="utf-8") == "# Changelog\n"
    assert [path.name for path in tmp_path.iterdir()] == ["CHANGELOG.md"]


def test_write_atomic_text_preserves_permissions(tmp_path: Path) -> None:
    """Replacing a file keeps its permission bits."""
    target = tmp_path / "package.json"
    target.write_text("{}\n", encoding="utf-8")
    target.chmod(0o640)

    files.write_atomic_text(target, '{"version": "1.0.0"}\n')

    assert stat.S_IMODE(target.stat().st_mode) == 0o640
    assert target.read_text(encoding="utf-8") == '{"version": "1.0.0"}\n'


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits only")
@pytest.mark.parametrize(
    ("umask", "expected_mode"),
    [(0o022, 0o644), (0o077, 0o600), (0o002, 0o664)],
)
def test_write_atomic_text_new_file_follows_umask(
    tmp_path: Path, umask: int, expected_mode: int
) -> None:
    """A newly created file gets the umask-derived mode, not ``0o600``."""
    target = tmp_path / "CHANGELOG.md"
    previous = os.umask(umask)
    try:
        files.write_atomic_text(target, "# Changelog\n")
    finally:
        os.umask(previous)

    assert stat.S_IMODE(target.stat().st_mode) == expected_mode


def test_write_atomic_text_reports_missing_directory(tmp_path: Path) -> None:
    """Writes into a missing directory raise :class:`FileWriteError`."""
    target = tmp_path / "missing" / "CHANGELOG.md"

    with pytest.raises(files.FileWriteError) as excinfo:
        files.write_atomic_text(target, "text")

    assert isinstance(excinfo.value, ReleaseError)
    assert excinfo.value.file_path == target
    assert str(target) in str(excinfo.value)
