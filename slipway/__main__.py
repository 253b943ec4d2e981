"""Allow ``python -m slipway``."""

from __future__ import annotations

from slipway.cli import main

raise SystemExit(main())
