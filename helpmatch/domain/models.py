"""Core domain models for jobs, users, and their matching attributes.

This module defines the data structures used throughout the application:
- Weekday: ISO weekday numbering (Monday=1 .. Sunday=7)
- JobStatus: job lifecycle state with its allowed transitions
- UserRole: distinguishes helpers from seekers
- Category / Tag: normalized, hashable classification labels
- Job: a posted job, read-only input to matching
- User: a registered user with availability and skill attributes

All models are frozen. Set-valued attributes are frozensets, so duplicate
entries collapse on construction.
"""

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, FrozenSet, Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_serializer, field_validator

from helpmatch.utils.timestamps import ensure_utc, parse_iso_date, utc_now


class Weekday(IntEnum):
    """Day of the week using ISO numbering."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        """Return the weekday of a calendar date (Gregorian calendar)."""
        return cls(value.isoweekday())

    @classmethod
    def parse(cls, value: Any) -> "Weekday":
        """Parse a weekday from a member, an ISO number, or a (short) name.

        Accepts ``Weekday.WEDNESDAY``, ``3``, ``"3"``, ``"wednesday"`` and ``"Wed"``.

        Raises:
            ValueError: If the value does not name a weekday
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        if isinstance(value, str):
            key = value.strip().upper()
            if key.isdigit():
                return cls(int(key))
            for member in cls:
                if key in (member.name, member.name[:3]):
                    return member
        raise ValueError(f"Invalid weekday: {value!r}")


class JobStatus(str, Enum):
    """Job lifecycle state."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    CLOSED = "CLOSED"

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Check whether moving from this status to ``target`` is allowed.

        OPEN -> IN_PROGRESS -> CLOSED, and OPEN -> CLOSED. CLOSED is terminal.
        """
        return target in _STATUS_TRANSITIONS[self]


_STATUS_TRANSITIONS = {
    JobStatus.OPEN: {JobStatus.IN_PROGRESS, JobStatus.CLOSED},
    JobStatus.IN_PROGRESS: {JobStatus.CLOSED},
    JobStatus.CLOSED: set(),
}


class UserRole(str, Enum):
    """Account role."""

    HELPER = "HELPER"
    SEEKER = "SEEKER"
    ADMIN = "ADMIN"


def _normalize_name(v: str) -> str:
    stripped = v.strip().lower() if isinstance(v, str) else v
    if not stripped:
        raise ValueError("Name cannot be empty or whitespace-only")
    return stripped


class Category(BaseModel):
    """Subject-matter classification of a job or of a user's competence."""

    name: str = Field(..., description="Normalized category name")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Strip whitespace and lower-case the name."""
        return _normalize_name(v)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return self.name


class Tag(BaseModel):
    """Fine-grained label on a job or user."""

    name: str = Field(..., description="Normalized tag name")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Strip whitespace and lower-case the name."""
        return _normalize_name(v)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return self.name


def _as_label_items(value: Any) -> Any:
    """Let set-valued label fields accept bare names as well as models."""
    if value is None:
        return []
    if isinstance(value, (str, dict, Category, Tag)):
        value = [value]
    if not isinstance(value, Iterable):
        return value
    return [{"name": item} if isinstance(item, str) else item for item in value]


def _validate_email(v: str) -> str:
    if not isinstance(v, str):
        raise ValueError("Email must be a string")
    try:
        validated = validate_email(v.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email address format: '{v}' - {e}") from e
    return validated.normalized.lower()


class Job(BaseModel):
    """A posted job.

    The Matching Engine only reads jobs. ``matched_helper`` is written by the
    job management layer through an explicit assignment, never by matching.

    The due date decides which weekday the temporal criterion checks against.
    It is optional at the model level so that a job with missing data can
    still be loaded and reported as invalid when matched.
    """

    id: Optional[int] = Field(None, description="Store-assigned job id")
    title: str = Field(..., description="Short job title")
    description: str = Field("", description="Free-text job description")
    author: str = Field(..., description="Email of the seeker who posted the job")
    due_date: Optional[date] = Field(None, description="Calendar date the job is due")
    categories: FrozenSet[Category] = Field(default_factory=frozenset)
    tags: FrozenSet[Tag] = Field(default_factory=frozenset)
    status: JobStatus = Field(JobStatus.OPEN, description="Lifecycle state")
    matched_helper: Optional[str] = Field(None, description="Email of the assigned helper")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time (UTC)")
    invalid_due_date: Optional[str] = Field(
        None, exclude=True, description="Stored due date that is not a calendar date"
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip whitespace from the title."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("author")
    @classmethod
    def validate_author(cls, v: str) -> str:
        """Validate and lower-case the author email."""
        return _validate_email(v)

    @field_validator("matched_helper")
    @classmethod
    def validate_matched_helper(cls, v: Optional[str]) -> Optional[str]:
        """Validate and lower-case the helper email."""
        if v is None:
            return None
        return _validate_email(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Optional[date]:
        """Accept dates, datetimes and ISO ``YYYY-MM-DD`` strings."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        parsed = parse_iso_date(v)
        if parsed is None:
            raise ValueError(f"due_date must be an ISO date (YYYY-MM-DD), got: {v!r}")
        return parsed

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def coerce_labels(cls, v: Any) -> Any:
        """Accept bare names for categories and tags."""
        return _as_label_items(v)

    @field_validator("created_at")
    @classmethod
    def ensure_created_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @field_serializer("categories", "tags")
    def serialize_labels(self, labels: FrozenSet[Any]) -> List[str]:
        return sorted(label.name for label in labels)

    @property
    def is_closed(self) -> bool:
        """True once the job has reached its terminal state."""
        return self.status == JobStatus.CLOSED

    @property
    def category_names(self) -> FrozenSet[str]:
        return frozenset(category.name for category in self.categories)

    @property
    def tag_names(self) -> FrozenSet[str]:
        return frozenset(tag.name for tag in self.tags)

    def evolve(self, **changes: Any) -> "Job":
        """Return a validated copy of this job with ``changes`` applied.

        Setting ``due_date`` replaces an unreadable stored date.
        """
        if "due_date" in changes:
            changes.setdefault("invalid_due_date", None)
        return type(self)(**{**dict(self), **changes})

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "id": 42,
                "title": "Carry groceries upstairs",
                "description": "Two bags, third floor, no elevator.",
                "author": "seeker@email.com",
                "due_date": "2020-10-14",
                "categories": ["shopping"],
                "tags": ["heavy-lifting"],
                "status": "OPEN",
                "matched_helper": None,
                "created_at": "2020-10-10T09:00:00Z",
            }
        },
    }


class User(BaseModel):
    """A registered user.

    Users are identified by email: two ``User`` values with the same email
    compare equal and hash alike, so sets of users deduplicate by identity
    regardless of attribute snapshots.
    """

    email: str = Field(..., description="Unique, lower-cased email address")
    name: Optional[str] = Field(None, description="Display name")
    role: UserRole = Field(UserRole.HELPER, description="Account role")
    availability: FrozenSet[Weekday] = Field(
        default_factory=frozenset, description="Weekdays the user is willing to help"
    )
    categories: FrozenSet[Category] = Field(default_factory=frozenset)
    tags: FrozenSet[Tag] = Field(default_factory=frozenset)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate and lower-case the email address."""
        return _validate_email(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace from the display name."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("availability", mode="before")
    @classmethod
    def parse_availability(cls, v: Any) -> Any:
        """Accept weekday names and ISO numbers."""
        if v is None:
            return []
        if isinstance(v, (str, int)):
            v = [v]
        return [Weekday.parse(day) for day in v]

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def coerce_labels(cls, v: Any) -> Any:
        """Accept bare names for categories and tags."""
        return _as_label_items(v)

    @field_serializer("availability")
    def serialize_availability(self, availability: FrozenSet[Weekday]) -> List[int]:
        return sorted(day.value for day in availability)

    @field_serializer("categories", "tags")
    def serialize_labels(self, labels: FrozenSet[Any]) -> List[str]:
        return sorted(label.name for label in labels)

    @property
    def is_helper_eligible(self) -> bool:
        """Only helpers are considered as matching candidates."""
        return self.role == UserRole.HELPER

    @property
    def category_names(self) -> FrozenSet[str]:
        return frozenset(category.name for category in self.categories)

    @property
    def tag_names(self) -> FrozenSet[str]:
        return frozenset(tag.name for tag in self.tags)

    def is_available_on(self, day: Weekday) -> bool:
        return day in self.availability

    def __eq__(self, other: object) -> bool:
        if isinstance(other, User):
            return self.email == other.email
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.email)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "email": "leandro@email.com",
                "name": "Leandro",
                "role": "HELPER",
                "availability": ["MONDAY", "WEDNESDAY"],
                "categories": ["shopping", "gardening"],
                "tags": ["heavy-lifting"],
            }
        },
    }
