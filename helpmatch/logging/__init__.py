"""Structured logging for the helper matching service.

Loggers obtained through ``get_logger`` tag every record with the component
that emitted it; ``configure_logging`` installs the JSON or key-value output
and ``log_context`` scopes request fields such as ``job_id``.
"""

import logging
from typing import Optional, Union

from .config import configure_logging
from .context import get_log_context, log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a fixed ``component`` field into per-call extras."""

    def process(self, msg, kwargs):
        # Per-call extras win over the adapter's defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger with an optional default component field.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier added to every record

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="matching")
        >>> logger.info("Match finished", extra={"event": "matching.completed"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


__all__ = [
    "ComponentLoggerAdapter",
    "configure_logging",
    "get_log_context",
    "get_logger",
    "log_context",
]
