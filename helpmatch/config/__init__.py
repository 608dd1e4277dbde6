"""Configuration management module for the helper matching service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config, validate_config_file
from .models import (
    DEFAULT_CRITERIA,
    AppConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MatchingConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "parse_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "MatchingConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "DEFAULT_CRITERIA",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
