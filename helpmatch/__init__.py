"""Helper matching service: match posted jobs to available helpers."""

__version__ = "0.1.0"
