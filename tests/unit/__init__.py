"""Unit tests for :mod:`slipway`."""
