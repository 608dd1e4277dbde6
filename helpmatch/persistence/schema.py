"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for users, jobs and their label
collections, and converts ORM rows into domain models.

Set-valued attributes live in child/association tables, each with a primary
key over (owner, value), so the database enforces the no-duplicates rule of
the domain model. Collections are loaded with ``selectin`` so reading the
whole helper pool costs a fixed number of queries rather than one per user.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

from helpmatch.domain.models import Job, JobStatus, User, UserRole, Weekday
from helpmatch.utils.timestamps import parse_iso_date

logger = logging.getLogger(__name__)

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


user_categories = Table(
    "user_categories",
    Base.metadata,
    Column("user_email", String(255), ForeignKey("users.email", ondelete="CASCADE"), primary_key=True),
    Column("category_name", String(100), ForeignKey("categories.name"), primary_key=True),
)

user_tags = Table(
    "user_tags",
    Base.metadata,
    Column("user_email", String(255), ForeignKey("users.email", ondelete="CASCADE"), primary_key=True),
    Column("tag_name", String(100), ForeignKey("tags.name"), primary_key=True),
)

job_categories = Table(
    "job_categories",
    Base.metadata,
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("category_name", String(100), ForeignKey("categories.name"), primary_key=True),
    Index("idx_job_categories_name", "category_name"),
)

job_tags = Table(
    "job_tags",
    Base.metadata,
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_name", String(100), ForeignKey("tags.name"), primary_key=True),
    Index("idx_job_tags_name", "tag_name"),
)


class CategoryModel(Base):
    """ORM model for categories table."""

    __tablename__ = "categories"

    name = Column(String(100), primary_key=True, nullable=False)


class TagModel(Base):
    """ORM model for tags table."""

    __tablename__ = "tags"

    name = Column(String(100), primary_key=True, nullable=False)


class UserAvailabilityModel(Base):
    """ORM model for user_availability table (one row per user and ISO weekday)."""

    __tablename__ = "user_availability"

    user_email = Column(
        String(255), ForeignKey("users.email", ondelete="CASCADE"), primary_key=True
    )
    weekday = Column(Integer, primary_key=True, nullable=False)

    __table_args__ = (Index("idx_user_availability_weekday", "weekday"),)


class UserModel(Base):
    """ORM model for users table."""

    __tablename__ = "users"

    email = Column(String(255), primary_key=True, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.HELPER.value)

    availability = relationship(
        UserAvailabilityModel,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    categories = relationship(CategoryModel, secondary=user_categories, lazy="selectin")
    tags = relationship(TagModel, secondary=user_tags, lazy="selectin")

    __table_args__ = (Index("idx_users_role", "role"),)

    def to_domain(self) -> User:
        """Convert ORM model to domain model."""
        return User(
            email=self.email,
            name=self.name,
            role=UserRole(self.role),
            availability=[Weekday(row.weekday) for row in self.availability],
            categories=[category.name for category in self.categories],
            tags=[tag.name for tag in self.tags],
        )


class JobModel(Base):
    """ORM model for jobs table."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    author = Column(String(255), ForeignKey("users.email"), nullable=False)

    # Calendar date as YYYY-MM-DD
    due_date = Column(String(10), nullable=True)

    status = Column(String(20), nullable=False, default=JobStatus.OPEN.value)
    matched_helper = Column(String(255), ForeignKey("users.email"), nullable=True)

    # Timestamp (stored as ISO 8601 string)
    created_at = Column(String(50), nullable=False)

    categories = relationship(CategoryModel, secondary=job_categories, lazy="selectin")
    tags = relationship(TagModel, secondary=job_tags, lazy="selectin")

    __table_args__ = (
        Index("idx_jobs_status", "status"),
        Index("idx_jobs_author", "author"),
        Index("idx_jobs_matched_helper", "matched_helper"),
        Index("idx_jobs_created_at", "created_at"),
    )

    def to_domain(self) -> Job:
        """Convert ORM model to domain model.

        A stored due date that is not a calendar date loads as a missing due
        date, with the raw value kept in ``invalid_due_date``.
        """
        due_date = parse_iso_date(self.due_date) if self.due_date else None
        invalid_due_date = self.due_date if self.due_date and due_date is None else None

        return Job(
            id=self.id,
            title=self.title,
            description=self.description or "",
            author=self.author,
            due_date=due_date,
            categories=[category.name for category in self.categories],
            tags=[tag.name for tag in self.tags],
            status=JobStatus(self.status),
            matched_helper=self.matched_helper,
            created_at=_parse_datetime(self.created_at),
            invalid_due_date=invalid_due_date,
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 UTC string for database storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime(TIMESTAMP_FORMAT)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to an aware UTC datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
