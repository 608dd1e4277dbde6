"""Job management service: job lifecycle on top of the store and the matching engine.

The service owns the job lifecycle (create, update, close, delete, helper
assignment) and the lookups clients use to browse jobs. Finding helpers is
delegated to the MatchingEngine.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Union

from helpmatch.domain.models import Job, JobStatus, User
from helpmatch.logging import get_logger
from helpmatch.logging.context import log_context
from helpmatch.matching.engine import MatchingEngine
from helpmatch.matching.exceptions import (
    InvalidStatusTransitionError,
    JobNotFoundError,
    UserNotFoundError,
)
from helpmatch.matching.interfaces import ManagedJobStore, UserDirectory
from helpmatch.persistence.exceptions import RecordNotFoundError
from helpmatch.utils.timestamps import parse_iso_date

logger = get_logger(__name__, component="jobs")

# Fields a client may change after posting a job
UPDATABLE_FIELDS = frozenset({"title", "description", "due_date", "categories", "tags"})


class JobService:
    """Job lifecycle operations.

    Status moves OPEN -> IN_PROGRESS -> CLOSED (or OPEN -> CLOSED). Assigning
    a helper to an OPEN job starts it; closing is explicit.
    """

    def __init__(
        self,
        job_store: ManagedJobStore,
        user_directory: UserDirectory,
        engine: MatchingEngine,
        logger_instance: logging.Logger = None,
    ):
        """Initialize JobService.

        Args:
            job_store: Job storage with lifecycle operations
            user_directory: User lookups (job authors must be registered)
            engine: Matching engine used for helper suggestions and assignment
            logger_instance: Optional logger instance (defaults to module logger)
        """
        self.job_store = job_store
        self.user_directory = user_directory
        self.engine = engine
        self.logger = logger_instance or logger

    def create_job(self, job: Job) -> Job:
        """Store a new job posted by a registered user.

        Whatever id, status or helper the input carries, the new job is OPEN
        and unassigned.

        Raises:
            UserNotFoundError: If the author is not registered
        """
        if self.user_directory.find_by_id(job.author) is None:
            raise UserNotFoundError(job.author)

        created = self.job_store.create_job(
            job.evolve(id=None, status=JobStatus.OPEN, matched_helper=None)
        )
        self.logger.info(
            f"Created job {created.id}",
            extra={"event": "job.created", "job_id": created.id, "author": created.author},
        )
        return created

    def get_job(self, job_id: int) -> Job:
        """Return a job by id.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        job = self.job_store.get_job_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def update_job(self, job_id: int, changes: Dict[str, Any]) -> Job:
        """Apply client edits to a job.

        Args:
            job_id: Job to edit
            changes: New values for any of title, description, due_date, categories, tags

        Raises:
            ValueError: If a field is not editable or a value fails validation
            JobNotFoundError: If the job does not exist
        """
        not_editable = set(changes) - UPDATABLE_FIELDS
        if not_editable:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(not_editable))}")

        with log_context(job_id=job_id):
            updated = self.get_job(job_id).evolve(**changes)
            try:
                stored = self.job_store.update_job(updated)
            except RecordNotFoundError as e:
                raise JobNotFoundError(job_id) from e

            self.logger.info(
                f"Updated job {job_id}",
                extra={"event": "job.updated", "fields": sorted(changes)},
            )
            return stored

    def delete_job(self, job_id: int) -> None:
        """Delete a job.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        try:
            self.job_store.delete_job(job_id)
        except RecordNotFoundError as e:
            raise JobNotFoundError(job_id) from e

        self.logger.info(f"Deleted job {job_id}", extra={"event": "job.deleted", "job_id": job_id})

    def close_job(self, job_id: int) -> Job:
        """Close a job. Closing an already closed job is a no-op.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        return self._transition(self.get_job(job_id), JobStatus.CLOSED)

    def get_potential_helpers(self, job_id: int) -> List[User]:
        """Return the matching helpers for a job, sorted by email.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidJobDataError: If the job's data cannot be matched
        """
        helpers = self.engine.find_potential_helpers(job_id)
        return sorted(helpers, key=lambda user: user.email)

    def add_helper_for_job(self, job_id: int, email: str) -> Job:
        """Assign a helper to a job and start it if it was still open.

        The helper and the new status are stored in one write.

        Raises:
            UserNotFoundError: If no user has that email
            JobNotFoundError: If the job does not exist
        """
        current = self.get_job(job_id)
        target = JobStatus.IN_PROGRESS if current.status == JobStatus.OPEN else None

        job = self.engine.assign_helper(job_id, email, status=target)
        if target is not None:
            self._log_transition(current, target)
        return job

    def list_jobs(self) -> List[Job]:
        return self.job_store.list_jobs()

    def list_jobs_by_status(self, status: Union[JobStatus, str]) -> List[Job]:
        return self.job_store.list_jobs(status=JobStatus(status))

    def list_jobs_by_author(self, email: str) -> List[Job]:
        return self.job_store.list_jobs(author=email)

    def list_jobs_by_matched_helper(self, email: str) -> List[Job]:
        return self.job_store.list_jobs(matched_helper=email)

    def list_jobs_by_category(self, name: str) -> List[Job]:
        return self.job_store.list_jobs(categories=[name])

    def list_jobs_by_categories(self, names: Iterable[str]) -> List[Job]:
        """Jobs carrying at least one of the given categories."""
        return self.job_store.list_jobs(categories=list(names))

    def list_jobs_by_tag(self, name: str) -> List[Job]:
        return self.job_store.list_jobs(tags=[name])

    def list_jobs_by_tags(self, names: Iterable[str]) -> List[Job]:
        """Jobs carrying at least one of the given tags."""
        return self.job_store.list_jobs(tags=list(names))

    def list_jobs_by_date(self, day: Union[date, str]) -> List[Job]:
        """Jobs created on a calendar day (UTC).

        Raises:
            ValueError: If ``day`` is not an ISO date
        """
        parsed = parse_iso_date(day)
        if parsed is None:
            raise ValueError(f"Invalid date: {day!r}. Expected YYYY-MM-DD")
        return self.job_store.list_jobs(created_on=parsed)

    def _transition(self, job: Job, target: JobStatus) -> Job:
        if job.status == target:
            return job
        if not job.status.can_transition_to(target):
            raise InvalidStatusTransitionError(job.id, job.status.value, target.value)

        try:
            updated = self.job_store.set_status(job.id, target)
        except RecordNotFoundError as e:
            raise JobNotFoundError(job.id) from e

        self._log_transition(job, target)
        return updated

    def _log_transition(self, job: Job, target: JobStatus) -> None:
        self.logger.info(
            f"Job {job.id} moved from {job.status.value} to {target.value}",
            extra={
                "event": "job.status_changed",
                "job_id": job.id,
                "from_status": job.status.value,
                "to_status": target.value,
            },
        )
