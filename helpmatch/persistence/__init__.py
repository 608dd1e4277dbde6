"""Persistence layer for users and jobs using SQLAlchemy.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repositories (session-scoped)
    - UserRepository, JobRepository

    # Matching collaborators (open their own sessions)
    - DatabaseUserDirectory, DatabaseJobStore

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from helpmatch.persistence import init_database, get_session, JobRepository
    >>> init_database("sqlite:///./data/helpmatch.db")
    >>> with get_session() as session:
    ...     job = JobRepository(session).get_by_id(42)
"""

from .database import (
    DEFAULT_DATABASE_URL,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from .directories import DatabaseJobStore, DatabaseUserDirectory
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import JobRepository, UserRepository

__all__ = [
    "DEFAULT_DATABASE_URL",
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "JobRepository",
    "UserRepository",
    "DatabaseJobStore",
    "DatabaseUserDirectory",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
