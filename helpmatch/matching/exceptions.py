"""Matching engine exceptions.

These are the caller-facing errors of the matching path. An empty match
result is never an error; these exceptions only cover identifiers that
cannot be resolved and job data a criterion cannot evaluate.
"""

from typing import List, Optional


class MatchingError(Exception):
    """Base exception for all matching errors."""

    pass


class JobNotFoundError(MatchingError):
    """Raised when a job id does not resolve to a stored job."""

    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"Job with id {job_id} not found")


class UserNotFoundError(MatchingError):
    """Raised when a user email does not resolve to a registered user."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} not found")


class InvalidJobDataError(MatchingError):
    """Raised when a job's data cannot be evaluated by a criterion.

    Examples:
    - Due date missing when the weekday criterion runs
    - Due date stored in a format that does not parse to a calendar date
    """

    def __init__(self, reason: str, job_id: Optional[int] = None):
        self.job_id = job_id
        self.reason = reason
        prefix = f"Job {job_id}" if job_id is not None else "Job"
        super().__init__(f"{prefix} has invalid data: {reason}")


class UnknownCriterionError(MatchingError):
    """Raised when a pipeline is configured with an unregistered criterion name."""

    def __init__(self, name: str, available: List[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown matching criterion '{name}'. Available: {', '.join(available)}"
        )


class InvalidStatusTransitionError(MatchingError):
    """Raised when a job status change is not allowed by the lifecycle."""

    def __init__(self, job_id: Optional[int], current: str, target: str):
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")
