"""Matching engine façade consumed by the job management layer.

This module implements the entry point that:
1. Resolves the job by id from the job store
2. Reads the helper-eligible candidate pool from the user directory
3. Runs the matching pipeline and returns the resulting set

It is also the boundary where store-level "not found" outcomes become the
caller-facing JobNotFoundError / UserNotFoundError.
"""

import logging
from typing import FrozenSet, Optional

from helpmatch.domain.models import Job, JobStatus, User
from helpmatch.logging import get_logger
from helpmatch.logging.context import log_context
from helpmatch.persistence.exceptions import RecordNotFoundError

from .exceptions import JobNotFoundError, UserNotFoundError
from .interfaces import JobStore, UserDirectory
from .models import MatchResult
from .pipeline import MatchingPipeline

logger = get_logger(__name__, component="matching")


class MatchingEngine:
    """Finds potential helpers for jobs and records helper assignments.

    Responsibilities:
    - Resolve jobs and users, translating missing records into matching errors
    - Read a fresh candidate pool on every request (no caching)
    - Treat closed jobs as not actionable (empty result, not an error)
    - Delegate the actual filtering to the MatchingPipeline

    The engine never creates, mutates or deletes jobs or users, except for the
    explicit ``assign_helper`` write it forwards to the job store.
    """

    def __init__(
        self,
        job_store: JobStore,
        user_directory: UserDirectory,
        pipeline: MatchingPipeline,
        logger_instance: logging.Logger = None,
    ):
        """Initialize MatchingEngine.

        Args:
            job_store: Read (and assignment) access to jobs
            user_directory: Read access to the user population
            pipeline: Criteria pipeline applied to each match request
            logger_instance: Optional logger instance (defaults to module logger)
        """
        self.job_store = job_store
        self.user_directory = user_directory
        self.pipeline = pipeline
        self.logger = logger_instance or logger

    def find_potential_helpers(self, job_id: int) -> FrozenSet[User]:
        """Return the set of users eligible to help with a job.

        An empty set is a valid answer ("no eligible helpers currently").

        Args:
            job_id: Id of the job to match

        Returns:
            Frozenset of eligible users

        Raises:
            JobNotFoundError: If the job id does not exist
            InvalidJobDataError: If a criterion cannot evaluate the job's data
        """
        return self.match(job_id).helpers

    def match(self, job_id: int) -> MatchResult:
        """Match a stored job and return the detailed result.

        Raises:
            JobNotFoundError: If the job id does not exist
            InvalidJobDataError: If a criterion cannot evaluate the job's data
        """
        with log_context(job_id=job_id):
            job = self._resolve_job(job_id)
            return self.match_job(job)

    def match_job(self, job: Job) -> MatchResult:
        """Match an in-hand job snapshot against the current candidate pool."""
        with log_context(job_id=job.id):
            if job.is_closed:
                self.logger.info(
                    f"Job {job.id} is closed, skipping matching",
                    extra={"event": "matching.skipped", "reason": "job_closed"},
                )
                return MatchResult(
                    job_id=job.id, helpers=frozenset(), skipped_reason="job_closed"
                )

            candidates = frozenset(
                user
                for user in self.user_directory.find_helper_eligible_users()
                if user.is_helper_eligible
            )
            outcome = self.pipeline.run(job, candidates)

            result = MatchResult(
                job_id=job.id,
                helpers=outcome.helpers,
                candidate_count=len(candidates),
                stages=outcome.stages,
            )

            self.logger.info(
                f"Found {len(result.helpers)} potential helpers for job {job.id}",
                extra={
                    "event": "matching.completed",
                    **result.to_log_dict(),
                    "criteria": outcome.evaluated_criteria,
                    "short_circuited_at": outcome.short_circuited_at,
                },
            )
            return result

    def assign_helper(
        self, job_id: int, user_email: str, status: Optional[JobStatus] = None
    ) -> Job:
        """Record ``user_email`` as the helper of a job.

        The assignment is authoritative: the user is not re-checked against
        the matching criteria.

        Args:
            job_id: Id of the job
            user_email: Email of the helper to assign
            status: Status to store together with the assignment, if any

        Returns:
            The updated job

        Raises:
            UserNotFoundError: If no user has that email
            JobNotFoundError: If the job id does not exist
        """
        with log_context(job_id=job_id):
            user = self.user_directory.find_by_id(user_email)
            if user is None:
                raise UserNotFoundError(user_email)

            self._resolve_job(job_id)

            try:
                job = self.job_store.assign_helper(job_id, user.email, status)
            except RecordNotFoundError as e:
                raise JobNotFoundError(job_id) from e

            self.logger.info(
                f"Assigned helper {user.email} to job {job_id}",
                extra={"event": "job.helper_assigned", "helper": user.email},
            )
            return job

    def _resolve_job(self, job_id: int) -> Job:
        try:
            job = self.job_store.get_job_by_id(job_id)
        except RecordNotFoundError as e:
            raise JobNotFoundError(job_id) from e

        if job is None:
            self.logger.warning(
                f"Job {job_id} not found",
                extra={"event": "matching.job_not_found"},
            )
            raise JobNotFoundError(job_id)
        return job
