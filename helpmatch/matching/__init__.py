"""Helper matching engine.

This module provides:
- MatchingCriterion: protocol for a single filter over (job, candidates)
- WeekdayCriterion, CategoryCriterion, TagCriterion: built-in criteria
- MatchingPipeline: ordered composition of criteria with short-circuiting
- MatchingEngine: façade resolving jobs and candidates and running the pipeline
- The caller-facing error taxonomy (JobNotFoundError, UserNotFoundError, ...)
"""

from .exceptions import (
    InvalidJobDataError,
    InvalidStatusTransitionError,
    JobNotFoundError,
    MatchingError,
    UnknownCriterionError,
    UserNotFoundError,
)
from .criteria import (
    CategoryCriterion,
    MatchingCriterion,
    PredicateCriterion,
    TagCriterion,
    WeekdayCriterion,
    available_criteria,
    build_criteria,
    get_criterion,
    register_criterion,
)
from .models import MatchResult, PipelineResult, StageResult
from .pipeline import MatchingPipeline
from .engine import MatchingEngine
from .interfaces import JobStore, ManagedJobStore, UserDirectory

__all__ = [
    "MatchingEngine",
    "MatchingPipeline",
    "MatchingCriterion",
    "PredicateCriterion",
    "WeekdayCriterion",
    "CategoryCriterion",
    "TagCriterion",
    "register_criterion",
    "available_criteria",
    "get_criterion",
    "build_criteria",
    "MatchResult",
    "PipelineResult",
    "StageResult",
    "JobStore",
    "ManagedJobStore",
    "UserDirectory",
    "MatchingError",
    "JobNotFoundError",
    "UserNotFoundError",
    "InvalidJobDataError",
    "InvalidStatusTransitionError",
    "UnknownCriterionError",
]
