"""Test helper utilities for helper matching tests."""

from .in_memory import (
    FIXTURES_DIR,
    InMemoryJobStore,
    InMemoryUserDirectory,
    load_fixture_data,
)

__all__ = ["FIXTURES_DIR", "InMemoryJobStore", "InMemoryUserDirectory", "load_fixture_data"]
