"""Load users and jobs from a YAML seed file.

Seed file layout::

    users:
      - email: leandro@example.com
        name: Leandro
        availability: [wednesday, friday]
        categories: [gardening]
        tags: [outdoor]
    jobs:
      - title: Mow the lawn
        author: seeker@example.com
        due_date: 2020-10-14
        categories: [gardening]

Users are registered before jobs so job authors resolve.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from helpmatch.domain.models import Job, User
from helpmatch.logging import get_logger
from helpmatch.persistence.directories import DatabaseJobStore, DatabaseUserDirectory

logger = get_logger(__name__, component="seed")


class SeedFileError(Exception):
    """Raised when a seed file cannot be read or holds invalid records."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = list(errors or [])
        details = "".join(f"\n  - {error}" for error in self.errors)
        super().__init__(f"{message}{details}")


def load_seed_file(path: Path) -> Tuple[List[User], List[Job]]:
    """
    Parse and validate a seed file.

    Args:
        path: YAML file with optional ``users`` and ``jobs`` lists

    Returns:
        Tuple of (users, jobs) as domain models

    Raises:
        SeedFileError: If the file is unreadable or any record is invalid
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SeedFileError(f"Failed to parse seed file {path}: {e}")
    except OSError as e:
        raise SeedFileError(f"Failed to read seed file {path}: {e}")

    if not isinstance(data, dict):
        raise SeedFileError(f"Seed file {path} must contain a mapping with 'users' and 'jobs'")

    return parse_seed_data(data)


def parse_seed_data(data: Dict[str, Any]) -> Tuple[List[User], List[Job]]:
    """Validate raw seed records, collecting every error before failing."""
    errors = []
    users = _validate_records(User, data.get("users") or [], "users", errors)
    jobs = _validate_records(Job, data.get("jobs") or [], "jobs", errors)

    if errors:
        raise SeedFileError("Seed data validation failed", errors=errors)
    return users, jobs


def _validate_records(model, records, section: str, errors: List[str]) -> list:
    if not isinstance(records, list):
        errors.append(f"'{section}' must be a list")
        return []

    validated = []
    for idx, record in enumerate(records):
        try:
            validated.append(model.model_validate(record))
        except ValidationError as e:
            for error in e.errors():
                field_path = " -> ".join(str(loc) for loc in error["loc"]) or "<record>"
                errors.append(f"{section}[{idx}] {field_path}: {error['msg']}")
    return validated


def seed_database(
    users: List[User],
    jobs: List[Job],
    user_directory: DatabaseUserDirectory,
    job_store: DatabaseJobStore,
) -> List[Job]:
    """
    Store seed users and jobs.

    Users are upserted by email. Jobs are always inserted as new rows and
    keep the status and helper given in the file.

    Returns:
        The stored jobs with their assigned ids
    """
    for user in users:
        user_directory.register(user)

    stored_jobs = [job_store.create_job(job.evolve(id=None)) for job in jobs]

    logger.info(
        f"Seeded {len(users)} users and {len(stored_jobs)} jobs",
        extra={"event": "seed.completed", "user_count": len(users), "job_count": len(stored_jobs)},
    )
    return stored_jobs
