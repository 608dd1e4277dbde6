"""Matching pipeline: an ordered chain of criteria applied as successive filters.

The pipeline narrows the candidate pool one criterion at a time:

    result_0 = candidate pool
    result_i = criterion_i.filter(job, result_{i-1})

Every stage can only remove candidates, so criterion order changes the amount
of work done but never the final set. As soon as the pool is empty the
remaining stages are skipped.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from helpmatch.domain.models import Job, User
from helpmatch.logging import get_logger

from .criteria import MatchingCriterion, build_criteria
from .models import PipelineResult, StageResult

logger = get_logger(__name__, component="matching")

DEFAULT_PARTITION_SIZE = 500
DEFAULT_MAX_WORKERS = 4


class MatchingPipeline:
    """Applies an ordered, fixed sequence of matching criteria.

    The criteria tuple is fixed at construction and the pipeline keeps no
    per-request state, so one instance can serve concurrent match requests.

    When ``parallel`` is enabled, a stage whose input holds at least two
    partitions' worth of candidates is split into partitions of
    ``partition_size`` that are filtered on a thread pool and unioned. The
    result is the same set the sequential path produces.
    """

    def __init__(
        self,
        criteria: Sequence[MatchingCriterion],
        parallel: bool = False,
        partition_size: int = DEFAULT_PARTITION_SIZE,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """Initialize MatchingPipeline.

        Args:
            criteria: Criteria in evaluation order (most selective first is fastest)
            parallel: Whether large stages are filtered in concurrent partitions
            partition_size: Candidates per partition when filtering in parallel
            max_workers: Upper bound on worker threads per stage

        Raises:
            TypeError: If an element does not implement the criterion protocol
            ValueError: If partition_size or max_workers is not positive
        """
        for criterion in criteria:
            if not isinstance(criterion, MatchingCriterion):
                raise TypeError(f"Not a matching criterion: {criterion!r}")
        if partition_size < 1:
            raise ValueError(f"partition_size must be positive, got: {partition_size}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be positive, got: {max_workers}")

        self._criteria: Tuple[MatchingCriterion, ...] = tuple(criteria)
        self.parallel = parallel
        self.partition_size = partition_size
        self.max_workers = max_workers

    @classmethod
    def from_names(cls, names: Iterable[str], **options) -> "MatchingPipeline":
        """Build a pipeline from registered criterion names."""
        return cls(build_criteria(names), **options)

    @classmethod
    def from_config(cls, matching_config) -> "MatchingPipeline":
        """Build a pipeline from a ``MatchingConfig``."""
        return cls.from_names(
            matching_config.criteria,
            parallel=matching_config.parallel,
            partition_size=matching_config.partition_size,
            max_workers=matching_config.max_workers,
        )

    @property
    def criteria(self) -> Tuple[MatchingCriterion, ...]:
        return self._criteria

    @property
    def criterion_names(self) -> List[str]:
        return [criterion.name for criterion in self._criteria]

    def filter(self, job: Job, candidates: AbstractSet[User]) -> FrozenSet[User]:
        """Return the candidates that pass every criterion."""
        return self.run(job, candidates).helpers

    def run(self, job: Job, candidates: Iterable[User]) -> PipelineResult:
        """Run all criteria over ``candidates`` and report per-stage statistics.

        Errors raised by a criterion (e.g. InvalidJobDataError) propagate
        unchanged.

        Args:
            job: Job being matched
            candidates: Candidate pool

        Returns:
            PipelineResult with the final set and stage statistics
        """
        current: FrozenSet[User] = frozenset(candidates)
        stages: List[StageResult] = []
        short_circuited_at: Optional[str] = None

        for index, criterion in enumerate(self._criteria):
            if not current:
                break

            started = time.perf_counter()
            passed, partitions = self._apply(criterion, job, current)
            # Criteria may only narrow the pool
            passed = passed & current
            stage = StageResult(
                criterion=criterion.name,
                input_count=len(current),
                output_count=len(passed),
                duration_seconds=time.perf_counter() - started,
                partitions=partitions,
            )
            stages.append(stage)

            logger.debug(
                f"Stage {criterion.name}: {stage.input_count} -> {stage.output_count}",
                extra={
                    "event": "matching.stage.completed",
                    "criterion": criterion.name,
                    "input_count": stage.input_count,
                    "output_count": stage.output_count,
                    "rejected_count": stage.rejected_count,
                    "partitions": partitions,
                },
            )

            current = passed
            if not current and index < len(self._criteria) - 1:
                short_circuited_at = criterion.name
                logger.debug(
                    f"Pipeline short-circuited after {criterion.name}",
                    extra={
                        "event": "matching.short_circuited",
                        "criterion": criterion.name,
                        "skipped_stages": len(self._criteria) - index - 1,
                    },
                )

        return PipelineResult(
            helpers=current,
            stages=stages,
            short_circuited_at=short_circuited_at,
        )

    def _apply(
        self, criterion: MatchingCriterion, job: Job, candidates: FrozenSet[User]
    ) -> Tuple[FrozenSet[User], int]:
        """Apply one criterion, partitioning the input when parallel filtering pays off."""
        if not self.parallel or len(candidates) < self.partition_size * 2:
            return frozenset(criterion.filter(job, candidates)), 1

        members = list(candidates)
        partitions = [
            frozenset(members[start:start + self.partition_size])
            for start in range(0, len(members), self.partition_size)
        ]
        workers = min(self.max_workers, len(partitions))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="match-stage") as executor:
            results = list(executor.map(lambda part: criterion.filter(job, part), partitions))

        return frozenset().union(*results), len(partitions)

    def __repr__(self) -> str:
        return f"MatchingPipeline(criteria={self.criterion_names}, parallel={self.parallel})"
