"""Job management: lifecycle operations and lookups over stored jobs."""

from .service import UPDATABLE_FIELDS, JobService

__all__ = ["JobService", "UPDATABLE_FIELDS"]
