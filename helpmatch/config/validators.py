"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

# Below this, thread overhead outweighs the per-partition work
MIN_USEFUL_PARTITION_SIZE = 50


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    matching = config_dict.get("matching", {})
    if not isinstance(matching, dict):
        return warning_messages

    # A pipeline without the weekday criterion ignores helper availability
    criteria = matching.get("criteria")
    if isinstance(criteria, list):
        names = [name.strip().lower() for name in criteria if isinstance(name, str)]
        if names and "weekday" not in names:
            warning_messages.append(
                "Matching criteria do not include 'weekday'; "
                "helpers will be suggested regardless of availability"
            )

    if matching.get("parallel"):
        partition_size = matching.get("partition_size", 500)
        if isinstance(partition_size, int) and 0 < partition_size < MIN_USEFUL_PARTITION_SIZE:
            warning_messages.append(
                f"Small partition_size ({partition_size}) with parallel matching "
                "may be slower than sequential filtering"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
