"""Utility helpers for the :mod:`slipway` package."""

from __future__ import annotations

from .commands import GIT, SLIPWAY_CATALOGUE
from .files import FileWriteError, write_atomic_text
from .path import normalise_repo_root

__all__ = [
    "GIT",
    "SLIPWAY_CATALOGUE",
    "FileWriteError",
    "normalise_repo_root",
    "write_atomic_text",
]
