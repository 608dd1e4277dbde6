"""In-memory job store and user directory for testing.

These implement the same protocols as the database-backed collaborators but
keep everything in dictionaries, so engine and service tests run without a
database. Fixture data is loaded from YAML files under ``tests/fixtures``.
"""

from datetime import date
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from helpmatch.domain.models import Job, JobStatus, User
from helpmatch.persistence.exceptions import RecordNotFoundError
from helpmatch.seed import load_seed_file

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def load_fixture_data(name: str) -> Tuple[List[User], List[Job]]:
    """Load users and jobs from a YAML fixture in ``tests/fixtures``.

    Args:
        name: Fixture file name (e.g. "marketplace.yaml")

    Returns:
        Tuple of (users, jobs)
    """
    fixture_path = FIXTURES_DIR / name
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")
    return load_seed_file(fixture_path)


class InMemoryUserDirectory:
    """User directory over a dict keyed by email.

    Attributes:
        pool_reads: Number of times the helper-eligible pool was read
    """

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {}
        self.pool_reads = 0
        for user in users:
            self.register(user)

    def register(self, user: User) -> User:
        self._users[user.email] = user
        return user

    def remove(self, email: str) -> None:
        self._users.pop(email, None)

    def find_helper_eligible_users(self) -> FrozenSet[User]:
        self.pool_reads += 1
        return frozenset(user for user in self._users.values() if user.is_helper_eligible)

    def find_by_id(self, email: str) -> Optional[User]:
        return self._users.get(email.strip().lower())


class InMemoryJobStore:
    """Job store over a dict keyed by id.

    Jobs passed to the constructor keep their ids; jobs created later get
    the next free id.
    """

    def __init__(self, jobs: Iterable[Job] = ()):
        self._jobs: Dict[int, Job] = {}
        for job in jobs:
            if job.id is None:
                self.create_job(job)
            else:
                self._jobs[job.id] = job

    def get_job_by_id(self, job_id: int) -> Optional[Job]:
        return self._jobs.get(job_id)

    def assign_helper(self, job_id: int, user_email: str, status=None) -> Job:
        if status is None:
            return self._replace(job_id, matched_helper=user_email)
        return self._replace(job_id, matched_helper=user_email, status=status)

    def create_job(self, job: Job) -> Job:
        job_id = max(self._jobs, default=0) + 1
        stored = job.evolve(id=job_id)
        self._jobs[job_id] = stored
        return stored

    def update_job(self, job: Job) -> Job:
        if job.id not in self._jobs:
            raise RecordNotFoundError(f"Job {job.id} not found")
        self._jobs[job.id] = job
        return job

    def set_status(self, job_id: int, status: JobStatus) -> Job:
        return self._replace(job_id, status=status)

    def delete_job(self, job_id: int) -> None:
        if job_id not in self._jobs:
            raise RecordNotFoundError(f"Job {job_id} not found")
        del self._jobs[job_id]

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        author: Optional[str] = None,
        matched_helper: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
        created_on: Optional[date] = None,
    ) -> List[Job]:
        wanted_categories = {name.strip().lower() for name in categories or []}
        wanted_tags = {name.strip().lower() for name in tags or []}

        jobs = []
        for job in sorted(self._jobs.values(), key=lambda j: j.id):
            if status is not None and job.status != status:
                continue
            if author is not None and job.author != author.strip().lower():
                continue
            if matched_helper is not None and job.matched_helper != matched_helper.strip().lower():
                continue
            if wanted_categories and wanted_categories.isdisjoint(job.category_names):
                continue
            if wanted_tags and wanted_tags.isdisjoint(job.tag_names):
                continue
            if created_on is not None and job.created_at.date() != created_on:
                continue
            jobs.append(job)
        return jobs

    def _replace(self, job_id: int, **changes) -> Job:
        if job_id not in self._jobs:
            raise RecordNotFoundError(f"Job {job_id} not found")
        updated = self._jobs[job_id].evolve(**changes)
        self._jobs[job_id] = updated
        return updated
