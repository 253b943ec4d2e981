"""Read and rewrite the version field of the package metadata file."""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ
from contextlib import suppress

import msgspec
from tomlkit import parse as parse_toml
from tomlkit import string
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Item

from slipway.errors import ReleaseError
from slipway.utils import write_atomic_text

if typ.TYPE_CHECKING:
    from pathlib import Path

    from tomlkit.toml_document import TOMLDocument
else:  # pragma: no cover - provide runtime placeholders for type checking imports
    TOMLDocument = typ.Any

LOGGER = logging.getLogger(__name__)

_JSON_INDENT = 2

# Tables searched, in order, for a ``version`` key in TOML metadata files.
_TOML_VERSION_SELECTORS: typ.Final[tuple[tuple[str, ...], ...]] = (
    ("project",),
    ("package",),
    ("tool", "poetry"),
    ("workspace", "package"),
)


class MetadataError(ReleaseError):
    """Raised when the metadata file cannot supply or accept a version."""

    @classmethod
    def missing_file(cls, path: Path) -> MetadataError:
        """Return an error for an absent metadata file."""
        return cls(f"Package metadata file not found: {path}")

    @classmethod
    def unreadable(cls, path: Path, detail: str) -> MetadataError:
        """Return an error for a metadata file that cannot be parsed."""
        return cls(f"Failed to parse package metadata {path}: {detail}")

    @classmethod
    def missing_version(cls, path: Path) -> MetadataError:
        """Return an error for a metadata file without a version field."""
        return cls(f"Package metadata {path} has no string 'version' field")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise MetadataError.missing_file(path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataError.unreadable(path, str(exc)) from exc


def _is_toml(path: Path) -> bool:
    return path.suffix.lower() == ".toml"


def _load_json(path: Path) -> dict[str, typ.Any]:
    try:
        payload = msgspec.json.decode(_read_text(path))
    except msgspec.DecodeError as exc:
        raise MetadataError.unreadable(path, str(exc)) from exc
    if not isinstance(payload, dict):
        raise MetadataError.unreadable(path, "expected a JSON object")
    return payload


def _load_toml(path: Path) -> TOMLDocument:
    try:
        return parse_toml(_read_text(path))
    except TOMLKitError as exc:
        raise MetadataError.unreadable(path, str(exc)) from exc


def _select_toml_table(
    document: TOMLDocument,
) -> cabc.MutableMapping[str, typ.Any] | None:
    """Return the first table from :data:`_TOML_VERSION_SELECTORS` with a version."""
    for selector in _TOML_VERSION_SELECTORS:
        current: object = document
        for key in selector:
            if not isinstance(current, cabc.Mapping) or key not in current:
                current = None
                break
            current = current[key]
        if isinstance(current, cabc.MutableMapping) and "version" in current:
            return current
    return None


def _string_version(value: object, path: Path) -> str:
    if isinstance(value, str):
        return str(value)
    raise MetadataError.missing_version(path)


def read_version(path: Path) -> str:
    """Return the current version recorded in the metadata file at ``path``."""
    if _is_toml(path):
        table = _select_toml_table(_load_toml(path))
        if table is None:
            raise MetadataError.missing_version(path)
        return _string_version(table["version"], path)
    return _string_version(_load_json(path).get("version"), path)


def render_json_version(path: Path, version: str) -> str:
    """Return the JSON metadata text with only ``version`` replaced."""
    payload = _load_json(path)
    _string_version(payload.get("version"), path)
    payload["version"] = version
    encoded = msgspec.json.format(msgspec.json.encode(payload), indent=_JSON_INDENT)
    return f"{encoded.decode('utf-8')}\n"


def _replacement_string(current: object, version: str) -> Item:
    """Return a TOML string for ``version`` carrying the trivia of ``current``."""
    replacement = string(version)
    if isinstance(current, Item):
        with suppress(AttributeError):  # Preserve inline comments and whitespace trivia
            replacement._trivia = current._trivia  # type: ignore[attr-defined]
    return replacement


def render_toml_version(path: Path, version: str) -> str:
    """Return the TOML metadata text with only ``version`` replaced."""
    document = _load_toml(path)
    table = _select_toml_table(document)
    if table is None:
        raise MetadataError.missing_version(path)
    current = table["version"]
    _string_version(current, path)
    table["version"] = _replacement_string(current, version)
    text = document.as_string()
    if not text.endswith("\n"):
        text = f"{text}\n"
    return text


def write_version(path: Path, version: str) -> None:
    """Rewrite the version field of ``path`` atomically."""
    if _is_toml(path):
        text = render_toml_version(path, version)
    else:
        text = render_json_version(path, version)
    write_atomic_text(path, text)
    LOGGER.info("Updated %s to version %s", path.name, version)


__all__ = [
    "MetadataError",
    "read_version",
    "render_json_version",
    "render_toml_version",
    "write_version",
]
