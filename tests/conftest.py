"""Shared pytest fixtures."""

import logging

import pytest

from helpmatch.logging.context import clear_log_context
from helpmatch.persistence import close_database


@pytest.fixture(autouse=True)
def isolate_global_state():
    """Restore root logging, log context and the database engine after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level

    yield

    close_database()
    clear_log_context()
    root.handlers[:] = handlers
    root.setLevel(level)
