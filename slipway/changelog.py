"""Changelog generation from conventional commit subjects."""

from __future__ import annotations

import datetime as dt
import logging
import re
import typing as typ

import msgspec
from markdown_it import MarkdownIt

from slipway.utils import FileWriteError, write_atomic_text

if typ.TYPE_CHECKING:
    from pathlib import Path

    from markdown_it.token import Token

    from slipway.vcs import Commit
else:  # pragma: no cover - provide runtime placeholders for type checking imports
    Token = Commit = typ.Any

LOGGER = logging.getLogger(__name__)

# ``type(scope)!: summary``; the scope and breaking-change marker are optional.
CONVENTIONAL_SUBJECT: typ.Final[re.Pattern[str]] = re.compile(
    r"^(?P<kind>feat|fix|docs|chore|refactor)"
    r"(?:\((?P<scope>[^)]*)\))?!?:\s*(?P<summary>.*)$"
)

SECTION_TITLES: typ.Final[tuple[tuple[str, str], ...]] = (
    ("features", "Features"),
    ("fixes", "Fixes"),
    ("other", "Other"),
)


class CommitSummary(msgspec.Struct, frozen=True, kw_only=True):
    """Changelog bullets grouped by category, each in ``git log`` order."""

    features: tuple[str, ...] = ()
    fixes: tuple[str, ...] = ()
    other: tuple[str, ...] = ()

    def sections(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        """Return ``(title, bullets)`` pairs for every non-empty category."""
        return tuple(
            (title, bullets)
            for attribute, title in SECTION_TITLES
            if (bullets := getattr(self, attribute))
        )


def _strip_prefix(match: re.Match[str]) -> str:
    summary = match.group("summary").strip()
    scope = (match.group("scope") or "").strip()
    return f"{scope}: {summary}" if scope else summary


def summarise_commits(commits: typ.Iterable[Commit]) -> CommitSummary:
    """Classify ``commits`` into Features, Fixes and Other.

    ``feat`` and ``fix`` subjects lose their prefix. Subjects without a
    recognised prefix are kept verbatim under Other, while ``docs``,
    ``chore`` and ``refactor`` commits are left out of the changelog.
    """
    features: list[str] = []
    fixes: list[str] = []
    other: list[str] = []
    for commit in commits:
        subject = commit.subject.strip()
        match = CONVENTIONAL_SUBJECT.match(subject)
        if match is None:
            other.append(subject)
            continue
        kind = match.group("kind")
        if kind == "feat":
            features.append(_strip_prefix(match))
        elif kind == "fix":
            fixes.append(_strip_prefix(match))
    return CommitSummary(
        features=tuple(features), fixes=tuple(fixes), other=tuple(other)
    )


def compare_url(template: str, previous: str, version: str) -> str:
    """Render the compare link ``template`` for ``previous`` and ``version``."""
    return template.format(previous=previous, version=version)


class ChangelogEntry(msgspec.Struct, frozen=True, kw_only=True):
    """A single released version in the changelog."""

    version: str
    date: dt.date
    summary: CommitSummary
    link: str

    def render(self) -> str:
        """Return the Markdown block for this entry without a trailing newline."""
        lines = [f"## [{self.version}] - {self.date.isoformat()}", ""]
        for title, bullets in self.summary.sections():
            lines.extend((f"### {title}", ""))
            lines.extend(f"- {bullet}" for bullet in bullets)
            lines.append("")
        lines.append(f"[{self.version}]: {self.link}")
        return "\n".join(lines)


def _first_title_span(lines: list[str]) -> tuple[int, int] | None:
    """Return the ``[start, end)`` line span of the first top-level ``h1``.

    Headings nested in lists or block quotes are not document titles.
    """
    parser = MarkdownIt("commonmark")
    tokens: list[Token] = parser.parse("".join(lines))
    for token in tokens:
        if (
            token.type == "heading_open"
            and token.tag == "h1"
            and token.level == 0
            and token.map
        ):
            start, end = token.map
            return start, end
    return None


def _strip_leading_blank_lines(lines: list[str]) -> list[str]:
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    return lines[index:]


def insert_entry(document: str | None, entry: str, header: str) -> str:
    """Return ``document`` with ``entry`` inserted beneath its title.

    The entry lands directly below the first level-one heading with one
    blank line on each side; everything after the heading keeps its order.
    A document without a level-one heading gets ``header`` prepended, and
    a missing document becomes ``header`` followed by ``entry``.
    """
    block = entry.strip("\n")
    if not document or not document.strip():
        return f"{header}\n\n{block}\n"
    lines = document.splitlines(keepends=True)
    span = _first_title_span(lines)
    if span is None:
        preamble = f"{header}\n"
        remainder = _strip_leading_blank_lines(lines)
    else:
        _, end = span
        preamble = "".join(lines[:end])
        if not preamble.endswith("\n"):
            preamble = f"{preamble}\n"
        remainder = _strip_leading_blank_lines(lines[end:])
    parts = [preamble, "\n", block, "\n"]
    if remainder:
        parts.extend(("\n", "".join(remainder)))
        if not parts[-1].endswith("\n"):
            parts.append("\n")
    return "".join(parts)


def _read_existing(path: Path) -> str | None:
    """Return the current changelog text, or ``None`` when there is none yet."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise FileWriteError(path, f"cannot read existing changelog: {exc}") from exc


def write_changelog(path: Path, entry: str, header: str) -> None:
    """Insert ``entry`` into the changelog at ``path``, creating it if needed."""
    existing = _read_existing(path)
    if existing is None:
        LOGGER.info("Creating %s", path.name)
    write_atomic_text(path, insert_entry(existing, entry, header))


__all__ = [
    "CONVENTIONAL_SUBJECT",
    "ChangelogEntry",
    "CommitSummary",
    "compare_url",
    "insert_entry",
    "summarise_commits",
    "write_changelog",
]
