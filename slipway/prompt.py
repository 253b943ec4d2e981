"""Interactive confirmation providers."""

from __future__ import annotations

import sys
import typing as typ

from slipway.errors import ReleaseError

_AFFIRMATIVE_ANSWERS: typ.Final[frozenset[str]] = frozenset({"y", "Y"})


class UserAbortError(ReleaseError):
    """Raised when the operator declines a confirmation prompt."""

    def __init__(self) -> None:
        """Initialise the error with the standard abort message."""
        super().__init__("Aborted.")


class ConfirmationProvider(typ.Protocol):
    """Capability used to ask the operator a yes/no question."""

    def confirm(self, prompt: str) -> bool:
        """Return ``True`` when the operator accepts ``prompt``."""


def is_affirmative(answer: str) -> bool:
    """Return ``True`` when ``answer`` is a single ``y`` or ``Y``."""
    return answer.strip() in _AFFIRMATIVE_ANSWERS


class TerminalConfirmation:
    """Read confirmations from a text stream, blocking until a line arrives."""

    def __init__(
        self,
        stdin: typ.TextIO | None = None,
        stdout: typ.TextIO | None = None,
    ) -> None:
        """Bind the provider to ``stdin``/``stdout`` (process streams by default)."""
        self._stdin = stdin
        self._stdout = stdout

    def confirm(self, prompt: str) -> bool:
        """Write ``prompt`` and accept only ``y``/``Y``; EOF declines."""
        stdin = self._stdin or sys.stdin
        stdout = self._stdout or sys.stdout
        stdout.write(prompt)
        stdout.flush()
        answer = stdin.readline()
        if not answer.endswith("\n"):
            stdout.write("\n")
        return is_affirmative(answer)


def require_confirmation(provider: ConfirmationProvider, prompt: str) -> None:
    """Raise :class:`UserAbortError` unless ``provider`` accepts ``prompt``."""
    if not provider.confirm(prompt):
        raise UserAbortError


__all__ = [
    "ConfirmationProvider",
    "TerminalConfirmation",
    "UserAbortError",
    "is_affirmative",
    "require_confirmation",
]
