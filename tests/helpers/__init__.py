"""Shared helpers for the slipway test-suite."""
