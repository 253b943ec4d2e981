"""Step definitions for the slipway behaviour tests."""
