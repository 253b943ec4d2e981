"""Unit tests for :mod:`slipway.utils`."""
