"""Test-suite for :mod:`slipway`."""
