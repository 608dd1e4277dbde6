"""Utility functions for time and date handling."""

from .timestamps import (
    ensure_utc,
    format_timestamp,
    parse_iso_date,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_iso_date",
    "format_timestamp",
]
