"""Context propagation for structured logging.

Fields pushed here (``job_id``, ``request_id``, ``command`` ...) are added to
every log record emitted inside the scope. The store is a ``ContextVar``, so
concurrent match requests on different threads or tasks never see each
other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional


LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the current logging context.

    Args:
        **kwargs: Fields to add; existing keys are overridden

    Returns:
        Token for restoring the previous state with pop_log_context()

    Example:
        >>> token = push_log_context(job_id=42)
        >>> # ... every log record now carries job_id=42 ...
        >>> pop_log_context(token)
    """
    return LogContextVar.set({**LogContextVar.get(), **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all context fields (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager scoping logging fields to a block.

    Fields are restored on exit, including when the block raises.

    Example:
        >>> with log_context(job_id=42):
        ...     logger.info("Matching job")  # record includes job_id=42
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
