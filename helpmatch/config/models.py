"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator

from helpmatch.matching.criteria import available_criteria

DEFAULT_CRITERIA = ["weekday", "category", "tag"]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Matching pipeline settings."""

    criteria: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CRITERIA),
        min_length=1,
        description="Ordered criterion names applied by the pipeline",
    )
    parallel: bool = Field(False, description="Filter large pools in concurrent partitions")
    partition_size: int = Field(
        500, ge=1, description="Candidates per partition when filtering in parallel"
    )
    max_workers: int = Field(4, ge=1, le=64, description="Worker threads per stage")

    @field_validator("criteria")
    @classmethod
    def validate_criteria(cls, v: List[str]) -> List[str]:
        """Normalize names and check they are unique and registered."""
        normalized = []
        for name in v:
            stripped = name.strip().lower()
            if not stripped:
                raise ValueError("Criterion name cannot be empty or whitespace-only")
            if stripped in normalized:
                raise ValueError(f"Duplicate criterion: {stripped}")
            normalized.append(stripped)

        registered = available_criteria()
        unknown = [name for name in normalized if name not in registered]
        if unknown:
            raise ValueError(
                f"Unknown criteria: {', '.join(unknown)}. "
                f"Available: {', '.join(registered)}"
            )
        return normalized


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True, "validate_default": True}


class AppConfig(BaseModel):
    """Root configuration object for the helper matching service."""

    matching: MatchingConfig = Field(
        default_factory=MatchingConfig, description="Matching pipeline settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
