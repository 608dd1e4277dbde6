"""Data models for the matching engine.

This module defines the result structures produced by the matching pipeline
and the engine façade. Helper sets are frozensets: results are unordered and
contain each user at most once.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from helpmatch.domain.models import User


@dataclass(frozen=True)
class StageResult:
    """Outcome of applying one criterion inside a pipeline run.

    Attributes:
        criterion: Registered name of the criterion
        input_count: Candidates entering the stage
        output_count: Candidates that passed the stage
        duration_seconds: Time spent filtering
        partitions: Number of partitions filtered (1 when run sequentially)
    """

    criterion: str
    input_count: int
    output_count: int
    duration_seconds: float = 0.0
    partitions: int = 1

    @property
    def rejected_count(self) -> int:
        return self.input_count - self.output_count


@dataclass(frozen=True)
class PipelineResult:
    """Final candidate set of a pipeline run plus per-stage statistics.

    Attributes:
        helpers: Candidates that passed every evaluated stage
        stages: Stage results in evaluation order
        short_circuited_at: Name of the stage that emptied the pool, if any
            stages were skipped because of it
    """

    helpers: FrozenSet[User]
    stages: List[StageResult] = field(default_factory=list)
    short_circuited_at: Optional[str] = None

    @property
    def evaluated_criteria(self) -> List[str]:
        return [stage.criterion for stage in self.stages]


@dataclass(frozen=True)
class MatchResult:
    """Result of a match request for one job.

    Attributes:
        job_id: Job that was matched
        helpers: Eligible helpers (may be empty; that is a valid answer)
        candidate_count: Size of the helper-eligible pool that was read
        stages: Pipeline stage statistics (empty when matching was skipped)
        skipped_reason: Why the pipeline did not run (e.g. "job_closed")
    """

    job_id: Optional[int]
    helpers: FrozenSet[User]
    candidate_count: int = 0
    stages: List[StageResult] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.helpers

    @property
    def helper_emails(self) -> List[str]:
        """Helper emails in sorted order, for stable presentation."""
        return sorted(user.email for user in self.helpers)

    def to_log_dict(self) -> Dict:
        """Flatten the result for structured log fields."""
        return {
            "job_id": self.job_id,
            "candidate_count": self.candidate_count,
            "helper_count": len(self.helpers),
            "stages": [
                f"{stage.criterion}:{stage.input_count}->{stage.output_count}"
                for stage in self.stages
            ],
            "skipped_reason": self.skipped_reason,
        }
