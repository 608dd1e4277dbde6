"""Domain models for the helper matching service."""

from .models import Category, Job, JobStatus, Tag, User, UserRole, Weekday

__all__ = ["Job", "User", "Category", "Tag", "JobStatus", "UserRole", "Weekday"]
