"""Base exception shared by every fatal release failure."""

from __future__ import annotations


class ReleaseError(RuntimeError):
    """Raised when a release cannot continue.

    Every failure in the release pipeline is fatal: the command-line entry
    point reports the message on stderr and exits with a non-zero status.
    """


__all__ = ["ReleaseError"]
