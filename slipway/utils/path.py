"""Repository root resolution helpers."""

from __future__ import annotations

import os
from pathlib import Path

REPO_ROOT_ENV_VAR = "SLIPWAY_REPO_ROOT"


def normalise_repo_root(value: Path | str | None) -> Path:
    """Return an absolute repository root for ``value``.

    ``None`` falls back to :data:`REPO_ROOT_ENV_VAR` and then to the current
    working directory.
    """
    if value is None:
        value = os.environ.get(REPO_ROOT_ENV_VAR) or Path.cwd()
    return Path(value).expanduser().resolve(strict=False)


__all__ = ["REPO_ROOT_ENV_VAR", "normalise_repo_root"]
