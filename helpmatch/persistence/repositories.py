"""Data access layer (repositories) for persistence operations.

This module provides repository classes for CRUD operations on users and
jobs. Repositories encapsulate database operations and return domain models
rather than ORM models.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from helpmatch.domain.models import Job, JobStatus, User, UserRole

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    CategoryModel,
    JobModel,
    TagModel,
    UserAvailabilityModel,
    UserModel,
    _format_datetime,
)

logger = logging.getLogger(__name__)


def _get_or_create_labels(session: Session, model, names: Iterable[str]) -> list:
    """Load label rows by name, creating the missing ones."""
    wanted = sorted(set(names))
    if not wanted:
        return []

    existing = {
        row.name: row
        for row in session.execute(select(model).where(model.name.in_(wanted))).scalars()
    }
    labels = []
    for name in wanted:
        row = existing.get(name)
        if row is None:
            row = model(name=name)
            session.add(row)
        labels.append(row)
    return labels


class UserRepository:
    """Repository for user-related database operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email.

        Args:
            email: User email (case-insensitive)

        Returns:
            User domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, email.strip().lower())
            if user_model is None:
                return None
            return user_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def list_all(self) -> List[User]:
        """Retrieve all users ordered by email."""
        try:
            stmt = select(UserModel).order_by(UserModel.email)
            return [row.to_domain() for row in self.session.execute(stmt).scalars()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve users: {e}") from e

    def find_helper_eligible(self) -> List[User]:
        """Retrieve every user with the helper role.

        Availability, categories and tags are loaded in bulk with the users.

        Returns:
            List of User domain models (ordered by email)

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(UserModel)
                .where(UserModel.role == UserRole.HELPER.value)
                .order_by(UserModel.email)
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars()]

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving helper-eligible users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve helpers: {e}") from e

    def upsert(self, user: User) -> User:
        """Insert a new user or replace an existing user's attributes.

        Args:
            user: User domain model to persist

        Returns:
            Persisted User domain model

        Raises:
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, user.email)
            if user_model is None:
                user_model = UserModel(email=user.email)
                self.session.add(user_model)

            user_model.name = user.name
            user_model.role = user.role.value
            existing_days = {row.weekday: row for row in user_model.availability}
            user_model.availability = [
                existing_days.get(int(day))
                or UserAvailabilityModel(user_email=user.email, weekday=int(day))
                for day in sorted(user.availability)
            ]
            user_model.categories = _get_or_create_labels(
                self.session, CategoryModel, user.category_names
            )
            user_model.tags = _get_or_create_labels(self.session, TagModel, user.tag_names)

            self.session.flush()
            return user_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error upserting user {user.email}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert user due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting user {user.email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert user: {e}") from e

    def delete(self, email: str) -> None:
        """Delete a user.

        Raises:
            RecordNotFoundError: If the email is not registered
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, email.strip().lower())
            if user_model is None:
                raise RecordNotFoundError(f"User with email {email} not found")
            self.session.delete(user_model)
            self.session.flush()

        except IntegrityError as e:
            logger.error(f"Integrity error deleting user {email}: {e}", exc_info=True)
            raise DataIntegrityError(f"User {email} is still referenced by jobs: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error deleting user {email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete user: {e}") from e


class JobRepository:
    """Repository for job-related database operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, job_id: int) -> Optional[Job]:
        """Retrieve job by primary key.

        Args:
            job_id: Job id

        Returns:
            Job domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            job_model = self.session.get(JobModel, job_id)
            if job_model is None:
                return None
            return job_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def find(
        self,
        status: Optional[JobStatus] = None,
        author: Optional[str] = None,
        matched_helper: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
        created_on: Optional[date] = None,
    ) -> List[Job]:
        """Query jobs, combining all given filters with AND.

        ``categories`` and ``tags`` match jobs carrying at least one of the
        given names.

        Returns:
            List of Job domain models (ordered by id)

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobModel)

            if status is not None:
                stmt = stmt.where(JobModel.status == JobStatus(status).value)
            if author is not None:
                stmt = stmt.where(JobModel.author == author.strip().lower())
            if matched_helper is not None:
                stmt = stmt.where(JobModel.matched_helper == matched_helper.strip().lower())
            if categories is not None:
                names = [name.strip().lower() for name in categories]
                stmt = stmt.where(JobModel.categories.any(CategoryModel.name.in_(names)))
            if tags is not None:
                names = [name.strip().lower() for name in tags]
                stmt = stmt.where(JobModel.tags.any(TagModel.name.in_(names)))
            if created_on is not None:
                stmt = stmt.where(JobModel.created_at.startswith(created_on.isoformat()))

            stmt = stmt.order_by(JobModel.id)
            return [row.to_domain() for row in self.session.execute(stmt).scalars()]

        except SQLAlchemyError as e:
            logger.error(f"Error querying jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to query jobs: {e}") from e

    def create(self, job: Job) -> Job:
        """Insert a new job; the database assigns its id.

        Returns:
            Persisted Job domain model with id set

        Raises:
            DataIntegrityError: If author or helper is not a registered user
            PersistenceError: If database error occurs
        """
        try:
            job_model = JobModel(created_at=_format_datetime(job.created_at))
            self._apply(job_model, job)
            self.session.add(job_model)
            self.session.flush()
            return job_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating job '{job.title}': {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating job '{job.title}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to create job: {e}") from e

    def update(self, job: Job) -> Job:
        """Overwrite a stored job with ``job`` (matched by id).

        Raises:
            RecordNotFoundError: If the job id does not exist
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._require(job.id)
            self._apply(job_model, job)
            self.session.flush()
            return job_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error updating job {job.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to update job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job: {e}") from e

    def set_matched_helper(
        self, job_id: int, email: Optional[str], status: Optional[JobStatus] = None
    ) -> Job:
        """Set (or clear) the matched helper of a job, optionally with a new status.

        Raises:
            RecordNotFoundError: If the job id does not exist
            DataIntegrityError: If the helper is not a registered user
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._require(job_id)
            job_model.matched_helper = email.strip().lower() if email else None
            if status is not None:
                job_model.status = JobStatus(status).value
            self.session.flush()
            return job_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error assigning helper to job {job_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to assign helper: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error assigning helper to job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to assign helper: {e}") from e

    def set_status(self, job_id: int, status: JobStatus) -> Job:
        """Store a new status for a job (transition rules are checked by the caller).

        Raises:
            RecordNotFoundError: If the job id does not exist
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._require(job_id)
            job_model.status = JobStatus(status).value
            self.session.flush()
            return job_model.to_domain()

        except SQLAlchemyError as e:
            logger.error(f"Error updating status of job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update job status: {e}") from e

    def delete(self, job_id: int) -> None:
        """Delete a job.

        Raises:
            RecordNotFoundError: If the job id does not exist
            PersistenceError: If database error occurs
        """
        try:
            job_model = self._require(job_id)
            self.session.delete(job_model)
            self.session.flush()

        except SQLAlchemyError as e:
            logger.error(f"Error deleting job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete job: {e}") from e

    def _require(self, job_id: Optional[int]) -> JobModel:
        job_model = self.session.get(JobModel, job_id) if job_id is not None else None
        if job_model is None:
            raise RecordNotFoundError(f"Job with id {job_id} not found")
        return job_model

    def _apply(self, job_model: JobModel, job: Job) -> None:
        job_model.title = job.title
        job_model.description = job.description
        job_model.author = job.author
        job_model.due_date = job.due_date.isoformat() if job.due_date else job.invalid_due_date
        job_model.status = job.status.value
        job_model.matched_helper = job.matched_helper
        job_model.categories = _get_or_create_labels(
            self.session, CategoryModel, job.category_names
        )
        job_model.tags = _get_or_create_labels(self.session, TagModel, job.tag_names)
