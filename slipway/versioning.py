"""Version arithmetic for release bumps."""

from __future__ import annotations

import typing as typ

from slipway.errors import ReleaseError

BumpKeyword = typ.Literal["major", "minor", "patch"]

BUMP_KEYWORDS: typ.Final[tuple[BumpKeyword, ...]] = ("major", "minor", "patch")


class VersionFormatError(ReleaseError):
    """Raised when the current version cannot be split into numeric parts."""

    def __init__(self, version: str) -> None:
        """Describe the unparsable ``version``."""
        message = (
            f"Cannot bump version {version!r}; expected <major>.<minor>.<patch> "
            "with integer components."
        )
        super().__init__(message)
        self.version = version


def split_version(version: str) -> tuple[int, int, int]:
    """Return the integer ``(major, minor, patch)`` components of ``version``."""
    parts = version.strip().split(".")
    if len(parts) != 3:
        raise VersionFormatError(version)
    try:
        major, minor, patch = (int(part) for part in parts)
    except ValueError as exc:
        raise VersionFormatError(version) from exc
    return major, minor, patch


def is_bump_keyword(token: str) -> bool:
    """Return ``True`` when ``token`` names a component to increment."""
    return token in BUMP_KEYWORDS


def bump_version(current: str, token: str) -> str:
    """Return the version that follows ``current`` for ``token``.

    ``major``, ``minor`` and ``patch`` increment one component and zero every
    component of lower significance. Any other token is taken as the new
    version verbatim; explicit versions are not validated.
    """
    if not is_bump_keyword(token):
        return token
    major, minor, patch = split_version(current)
    if token == "major":
        return f"{major + 1}.0.0"
    if token == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


__all__ = [
    "BUMP_KEYWORDS",
    "BumpKeyword",
    "VersionFormatError",
    "bump_version",
    "is_bump_keyword",
    "split_version",
]
