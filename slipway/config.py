"""Configuration loading for the :mod:`slipway` toolkit."""

from __future__ import annotations

import contextlib
import contextvars
import dataclasses as dc
import string
import typing as typ
from collections import abc as cabc

from cyclopts.config import Toml

from slipway.errors import ReleaseError
from slipway.utils import normalise_repo_root

if typ.TYPE_CHECKING:  # pragma: no cover - type checking only
    from pathlib import Path

CONFIG_FILENAME = "slipway.toml"

DEFAULT_COMPARE_URL = "https://github.com/tobi/qmd/compare/v{previous}...v{version}"

CONFIG_ROOT_TOML_KEYS: typ.Final[frozenset[str]] = frozenset(
    {"release", "changelog"}
)
RELEASE_TOML_KEYS: typ.Final[frozenset[str]] = frozenset(
    {"branch", "metadata_file", "tag_prefix", "remote", "publish_command"}
)
CHANGELOG_TOML_KEYS: typ.Final[frozenset[str]] = frozenset(
    {"path", "header", "compare_url"}
)
COMPARE_URL_FIELDS: typ.Final[frozenset[str]] = frozenset({"previous", "version"})


class ConfigurationError(ReleaseError):
    """Raised when the :mod:`slipway` configuration is invalid."""


class ConfigurationNotLoadedError(ConfigurationError):
    """Raised when code accesses the configuration before it is loaded."""


@dc.dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Settings controlling the release commit and tag."""

    branch: str = "main"
    metadata_file: str = "package.json"
    tag_prefix: str = "v"
    remote: str = "origin"
    publish_command: str = "npm publish"

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any] | None) -> ReleaseConfig:
        """Create a :class:`ReleaseConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _validate_mapping_keys(mapping, set(RELEASE_TOML_KEYS), "release")
        defaults = cls()
        return cls(
            branch=_non_empty_string(
                mapping.get("branch"), "release.branch", defaults.branch
            ),
            metadata_file=_non_empty_string(
                mapping.get("metadata_file"),
                "release.metadata_file",
                defaults.metadata_file,
            ),
            tag_prefix=_string(
                mapping.get("tag_prefix"), "release.tag_prefix", defaults.tag_prefix
            ),
            remote=_non_empty_string(
                mapping.get("remote"), "release.remote", defaults.remote
            ),
            publish_command=_string(
                mapping.get("publish_command"),
                "release.publish_command",
                defaults.publish_command,
            ),
        )

    def tag_for(self, version: str) -> str:
        """Return the tag name used for ``version``."""
        return f"{self.tag_prefix}{version}"


@dc.dataclass(frozen=True, slots=True)
class ChangelogConfig:
    """Settings for the generated changelog document."""

    path: str = "CHANGELOG.md"
    header: str = "# Changelog"
    compare_url: str = DEFAULT_COMPARE_URL

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None
    ) -> ChangelogConfig:
        """Create a :class:`ChangelogConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _validate_mapping_keys(mapping, set(CHANGELOG_TOML_KEYS), "changelog")
        defaults = cls()
        return cls(
            path=_non_empty_string(
                mapping.get("path"), "changelog.path", defaults.path
            ),
            header=_non_empty_string(
                mapping.get("header"), "changelog.header", defaults.header
            ),
            compare_url=_compare_url(mapping.get("compare_url")),
        )


@dc.dataclass(frozen=True, slots=True)
class SlipwayConfig:
    """Strongly-typed representation of ``slipway.toml``."""

    release: ReleaseConfig = dc.field(default_factory=ReleaseConfig)
    changelog: ChangelogConfig = dc.field(default_factory=ChangelogConfig)

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any]) -> SlipwayConfig:
        """Create a :class:`SlipwayConfig` from a parsed configuration mapping."""
        _validate_mapping_keys(
            mapping, set(CONFIG_ROOT_TOML_KEYS), "configuration section"
        )
        return cls(
            release=ReleaseConfig.from_mapping(
                _optional_mapping(mapping.get("release"), "release")
            ),
            changelog=ChangelogConfig.from_mapping(
                _optional_mapping(mapping.get("changelog"), "changelog")
            ),
        )


_active_config: contextvars.ContextVar[SlipwayConfig] = contextvars.ContextVar(
    "slipway_active_config"
)


def _validate_mapping_keys(
    mapping: cabc.Mapping[str, typ.Any] | None,
    allowed_keys: set[str],
    context: str,
) -> None:
    """Validate that mapping contains only allowed keys.

    Args:
        mapping: The mapping to validate (may be None).
        allowed_keys: Set of permitted key names.
        context: Context for error message (e.g., "release", "changelog").

    Raises:
        ConfigurationError: If mapping contains unknown keys.

    """
    if mapping is None:
        return
    unknown = set(mapping) - allowed_keys
    if unknown:
        joined = ", ".join(sorted(unknown))
        if context.endswith(" section"):
            message = f"Unknown {context}(s): {joined}."
        else:
            message = f"Unknown {context} option(s): {joined}."
        raise ConfigurationError(message)


def build_loader(repo_root: Path) -> Toml:
    """Return a Cyclopts loader for ``slipway.toml`` in ``repo_root``."""
    resolved = normalise_repo_root(repo_root)
    return Toml(
        path=resolved / CONFIG_FILENAME,
        must_exist=False,
        search_parents=False,
        allow_unknown=True,
    )


def load_from_loader(loader: Toml) -> SlipwayConfig:
    """Load and validate configuration using ``loader``."""
    try:
        raw = loader.config
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    if not isinstance(raw, cabc.Mapping):
        message = "Configuration root must be a TOML table."
        raise ConfigurationError(message)
    return SlipwayConfig.from_mapping(raw)


def load_configuration(repo_root: Path) -> SlipwayConfig:
    """Load configuration for ``repo_root`` using Cyclopts."""
    loader = build_loader(repo_root)
    return load_from_loader(loader)


@contextlib.contextmanager
def use_configuration(configuration: SlipwayConfig) -> typ.Iterator[None]:
    """Set ``configuration`` as the active configuration for the current context."""
    token = _active_config.set(configuration)
    try:
        yield
    finally:
        _active_config.reset(token)


def current_configuration() -> SlipwayConfig:
    """Return the active configuration or raise if none has been set."""
    try:
        return _active_config.get()
    except LookupError as exc:
        message = "Configuration has not been loaded yet."
        raise ConfigurationNotLoadedError(message) from exc


def _string(value: object, field_name: str, default: str) -> str:
    """Return ``value`` as a string or ``default`` when it is absent."""
    if value is None:
        return default
    if isinstance(value, str):
        return value
    message = f"{field_name} must be a string; received {type(value).__name__}."
    raise ConfigurationError(message)


def _non_empty_string(value: object, field_name: str, default: str) -> str:
    """Return a stripped, non-empty string parsed from ``value``."""
    text = _string(value, field_name, default).strip()
    if not text:
        message = f"{field_name} must not be empty."
        raise ConfigurationError(message)
    return text


def _compare_url(value: object) -> str:
    """Validate the ``changelog.compare_url`` template placeholders."""
    template = _non_empty_string(value, "changelog.compare_url", DEFAULT_COMPARE_URL)
    try:
        fields = {
            field_name
            for _literal, field_name, _spec, _conversion in string.Formatter().parse(
                template
            )
            if field_name is not None
        }
    except ValueError as exc:
        message = f"changelog.compare_url is not a valid template: {exc}"
        raise ConfigurationError(message) from exc
    unknown = fields - COMPARE_URL_FIELDS
    if unknown:
        joined = ", ".join(sorted(unknown))
        message = (
            f"changelog.compare_url may only reference {{previous}} and "
            f"{{version}}; found: {joined}."
        )
        raise ConfigurationError(message)
    return template


def _optional_mapping(
    value: object, field_name: str
) -> cabc.Mapping[str, typ.Any] | None:
    """Ensure ``value`` is a mapping if provided."""
    if value is None:
        return None
    if isinstance(value, cabc.Mapping):
        return typ.cast("cabc.Mapping[str, typ.Any]", value)
    message = f"{field_name} must be a TOML table; received {type(value).__name__}."
    raise ConfigurationError(message)
