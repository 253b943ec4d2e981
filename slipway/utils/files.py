"""Atomic file persistence helpers."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path

from slipway.errors import ReleaseError


class FileWriteError(ReleaseError):
    """Raised when a file cannot be replaced atomically."""

    def __init__(self, file_path: Path, detail: str) -> None:
        """Record the failing ``file_path`` alongside ``detail``."""
        super().__init__(f"Failed to write {file_path}: {detail}")
        self.file_path = file_path


_DEFAULT_FILE_MODE = 0o666


def _new_file_mode() -> int:
    """Return the mode a plain ``open()`` would give a new file."""
    umask = os.umask(0)
    os.umask(umask)
    return _DEFAULT_FILE_MODE & ~umask


def write_atomic_text(file_path: Path, content: str) -> None:
    """Persist ``content`` to ``file_path`` atomically using UTF-8 encoding.

    The text is written to a sibling temporary file which then replaces
    ``file_path``, so an interrupted write never truncates the original.
    Existing permission bits are carried over to the replacement; new files
    get the usual umask-derived mode rather than ``mkstemp``'s ``0o600``.
    """
    dirpath = file_path.parent
    target_mode: int | None = None
    with suppress(FileNotFoundError):
        target_mode = file_path.stat().st_mode
    if target_mode is None:
        target_mode = _new_file_mode()
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=dirpath,
            prefix=f"{file_path.name}.",
            text=True,
        )
    except OSError as exc:
        raise FileWriteError(file_path, str(exc)) from exc
    try:
        with suppress(AttributeError):
            os.fchmod(fd, target_mode)  # not available on Windows
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        Path(tmp_path).replace(file_path)
    except OSError as exc:
        raise FileWriteError(file_path, str(exc)) from exc
    finally:
        with suppress(FileNotFoundError):
            Path(tmp_path).unlink()


__all__ = ["FileWriteError", "write_atomic_text"]
