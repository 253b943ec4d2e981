"""Behaviour tests for the slipway CLI."""
