"""Convenience wrapper for running a release from a source checkout.

Usage::

    python scripts/release.py patch     # 0.9.0 -> 0.9.1
    python scripts/release.py minor     # 0.9.0 -> 0.10.0
    python scripts/release.py major     # 0.9.0 -> 1.0.0
    python scripts/release.py 1.0.0     # explicit version

The release logic lives in :mod:`slipway.commands.release`; this script only
forwards its arguments to the :mod:`slipway` CLI.
"""

from __future__ import annotations

import sys
import typing as typ

from slipway import cli as slipway_cli
from slipway.commands.release import USAGE


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Forward ``argv`` to :func:`slipway.cli.main`."""
    if argv is None:
        argv = sys.argv
    tokens = list(argv[1:])
    if not tokens:
        print(USAGE, file=sys.stderr)
        return slipway_cli.USAGE_EXIT_CODE
    return slipway_cli.main(tokens)


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
