"""Database-backed implementations of the matching engine's collaborators.

Each call opens its own session through ``get_session()``, so every read
sees the current state of the database and nothing is cached between calls.
"""

from datetime import date
from typing import FrozenSet, Iterable, List, Optional

from helpmatch.domain.models import Job, JobStatus, User

from .database import get_session
from .repositories import JobRepository, UserRepository


class DatabaseUserDirectory:
    """User directory backed by the ``users`` tables."""

    def find_helper_eligible_users(self) -> FrozenSet[User]:
        with get_session() as session:
            return frozenset(UserRepository(session).find_helper_eligible())

    def find_by_id(self, email: str) -> Optional[User]:
        with get_session() as session:
            return UserRepository(session).get_by_email(email)

    def list_users(self) -> List[User]:
        with get_session() as session:
            return UserRepository(session).list_all()

    def register(self, user: User) -> User:
        """Create or replace a user record."""
        with get_session() as session:
            return UserRepository(session).upsert(user)

    def remove(self, email: str) -> None:
        with get_session() as session:
            UserRepository(session).delete(email)


class DatabaseJobStore:
    """Job store backed by the ``jobs`` tables."""

    def get_job_by_id(self, job_id: int) -> Optional[Job]:
        with get_session() as session:
            return JobRepository(session).get_by_id(job_id)

    def assign_helper(
        self, job_id: int, user_email: str, status: Optional[JobStatus] = None
    ) -> Job:
        with get_session() as session:
            return JobRepository(session).set_matched_helper(job_id, user_email, status)

    def create_job(self, job: Job) -> Job:
        with get_session() as session:
            return JobRepository(session).create(job)

    def update_job(self, job: Job) -> Job:
        with get_session() as session:
            return JobRepository(session).update(job)

    def set_status(self, job_id: int, status: JobStatus) -> Job:
        with get_session() as session:
            return JobRepository(session).set_status(job_id, status)

    def delete_job(self, job_id: int) -> None:
        with get_session() as session:
            JobRepository(session).delete(job_id)

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        author: Optional[str] = None,
        matched_helper: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
        created_on: Optional[date] = None,
    ) -> List[Job]:
        with get_session() as session:
            return JobRepository(session).find(
                status=status,
                author=author,
                matched_helper=matched_helper,
                categories=categories,
                tags=tags,
                created_on=created_on,
            )
