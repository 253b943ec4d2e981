"""Command implementations for the :mod:`slipway` CLI."""

from __future__ import annotations

from . import release

__all__ = ["release"]
