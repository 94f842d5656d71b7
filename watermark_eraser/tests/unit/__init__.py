"""Unit tests for pure domain objects."""
