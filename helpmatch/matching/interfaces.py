"""Read contracts the matching engine needs from its collaborators.

The engine does not own job or user storage. Anything implementing these
protocols can back it: the SQL-backed implementations in
``helpmatch.persistence.directories`` or an in-memory fake in tests.
"""

from datetime import date
from typing import FrozenSet, Iterable, List, Optional, Protocol, runtime_checkable

from helpmatch.domain.models import Job, JobStatus, User


@runtime_checkable
class JobStore(Protocol):
    """Job access consumed by the matching engine."""

    def get_job_by_id(self, job_id: int) -> Optional[Job]:
        """Return the job with ``job_id``, or None if it does not exist."""
        ...

    def assign_helper(
        self, job_id: int, user_email: str, status: Optional[JobStatus] = None
    ) -> Job:
        """Persist ``user_email`` as the job's matched helper and return the updated job.

        When ``status`` is given it is stored in the same write.

        Raises:
            RecordNotFoundError: If the job does not exist
        """
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """Read-only access to the user population."""

    def find_helper_eligible_users(self) -> FrozenSet[User]:
        """Return every user that may act as a helper, read fresh."""
        ...

    def find_by_id(self, email: str) -> Optional[User]:
        """Return the user with ``email``, or None if not registered."""
        ...


@runtime_checkable
class ManagedJobStore(JobStore, Protocol):
    """Full job lifecycle access used by the job management service."""

    def create_job(self, job: Job) -> Job:
        """Store a new job and return it with its assigned id."""
        ...

    def update_job(self, job: Job) -> Job:
        """Overwrite a stored job (matched by id)."""
        ...

    def set_status(self, job_id: int, status: JobStatus) -> Job:
        """Store a new status for a job."""
        ...

    def delete_job(self, job_id: int) -> None:
        """Remove a job."""
        ...

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        author: Optional[str] = None,
        matched_helper: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
        created_on: Optional[date] = None,
    ) -> List[Job]:
        """Return jobs matching every given filter, ordered by id."""
        ...
