"""Script-shaped entrypoints for running slipway from a source checkout."""

# ``scripts.release`` mirrors the historical ``scripts/release.sh`` usage and
# delegates to :mod:`slipway.cli`.
