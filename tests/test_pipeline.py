"""Unit tests for the matching pipeline.

Covers:
- Ordered application and subset monotonicity across stages
- Short-circuiting once a stage empties the pool
- Stage statistics
- Parallel partitioned filtering producing the sequential result
- Construction from names and configuration
"""

import logging
import threading

import pytest

from helpmatch.config.models import MatchingConfig
from helpmatch.domain.models import Job, User
from helpmatch.matching import (
    CategoryCriterion,
    InvalidJobDataError,
    MatchingPipeline,
    TagCriterion,
    UnknownCriterionError,
    WeekdayCriterion,
)


class RecordingCriterion:
    """Criterion that records its calls and delegates to another criterion."""

    def __init__(self, inner, name=None):
        self.inner = inner
        self.name = name or inner.name
        self.calls = []
        self._lock = threading.Lock()

    def filter(self, job, candidates):
        with self._lock:
            self.calls.append(frozenset(candidates))
        return self.inner.filter(job, candidates)


class OverreachingCriterion:
    """Misbehaving criterion that returns users it was not given."""

    name = "overreaching"

    def __init__(self, extra):
        self.extra = extra

    def filter(self, job, candidates):
        return frozenset(candidates) | {self.extra}


@pytest.fixture
def pool():
    return frozenset(
        [
            User(
                email="leandro@email.com",
                availability=["wednesday"],
                categories=["gardening", "shopping"],
                tags=["outdoor"],
            ),
            User(
                email="hawkeye@email.com",
                availability=["monday", "wednesday"],
                categories=["shopping"],
                tags=["heavy-lifting"],
            ),
            User(
                email="spidey@email.com",
                availability=["wednesday"],
                categories=["tutoring"],
                tags=["math"],
            ),
            User(
                email="ironman@email.com",
                availability=["monday"],
                categories=["shopping"],
                tags=["heavy-lifting"],
            ),
        ]
    )


@pytest.fixture
def job():
    return Job(
        id=1,
        title="Weekly grocery run",
        author="seeker@email.com",
        due_date="2020-10-14",
        categories=["shopping"],
        tags=["heavy-lifting"],
    )


def emails(users):
    return {user.email.split("@")[0] for user in users}


class TestPipelineOrdering:
    """Tests for ordered application of criteria."""

    def test_applies_all_criteria(self, pool, job):
        pipeline = MatchingPipeline([WeekdayCriterion(), CategoryCriterion(), TagCriterion()])
        assert emails(pipeline.filter(job, pool)) == {"hawkeye"}

    def test_each_stage_is_subset_of_previous(self, pool, job):
        weekday = RecordingCriterion(WeekdayCriterion())
        category = RecordingCriterion(CategoryCriterion())
        tag = RecordingCriterion(TagCriterion())

        result = MatchingPipeline([weekday, category, tag]).run(job, pool)

        assert weekday.calls[0] == pool
        assert category.calls[0] <= weekday.calls[0]
        assert tag.calls[0] <= category.calls[0]
        assert result.helpers <= tag.calls[0]

    def test_order_does_not_change_result(self, pool, job):
        forward = MatchingPipeline([WeekdayCriterion(), CategoryCriterion(), TagCriterion()])
        backward = MatchingPipeline([TagCriterion(), CategoryCriterion(), WeekdayCriterion()])

        assert forward.filter(job, pool) == backward.filter(job, pool)

    def test_output_is_clamped_to_input(self, pool, job):
        """A criterion cannot add users that were not in its input."""
        outsider = User(email="outsider@email.com", availability=["wednesday"])
        pipeline = MatchingPipeline([WeekdayCriterion(), OverreachingCriterion(outsider)])

        result = pipeline.filter(job, pool)

        assert outsider not in result
        assert emails(result) == {"leandro", "hawkeye", "spidey"}

    def test_empty_pipeline_returns_pool(self, pool, job):
        assert MatchingPipeline([]).filter(job, pool) == pool

    def test_criteria_are_fixed_at_construction(self, job):
        criteria = [WeekdayCriterion()]
        pipeline = MatchingPipeline(criteria)
        criteria.append(TagCriterion())

        assert pipeline.criterion_names == ["weekday"]
        assert isinstance(pipeline.criteria, tuple)


class TestShortCircuit:
    """Tests for short-circuiting on an empty stage result."""

    def test_later_stages_not_evaluated(self, pool):
        """Category leaves nobody, so the tag stage never runs."""
        job = Job(
            id=4,
            title="Paint the garage door",
            author="seeker@email.com",
            due_date="2020-10-14",
            categories=["painting"],
            tags=["outdoor"],
        )
        tag = RecordingCriterion(TagCriterion())

        result = MatchingPipeline([WeekdayCriterion(), CategoryCriterion(), tag]).run(job, pool)

        assert result.helpers == frozenset()
        assert tag.calls == []
        assert result.short_circuited_at == "category"
        assert result.evaluated_criteria == ["weekday", "category"]

    def test_empty_last_stage_is_not_a_short_circuit(self, pool):
        job = Job(
            title="Outdoor shopping",
            author="seeker@email.com",
            due_date="2020-10-14",
            categories=["shopping"],
            tags=["juggling"],
        )

        result = MatchingPipeline([WeekdayCriterion(), TagCriterion()]).run(job, pool)

        assert result.helpers == frozenset()
        assert result.short_circuited_at is None

    def test_empty_pool_runs_no_stages(self, job):
        weekday = RecordingCriterion(WeekdayCriterion())

        result = MatchingPipeline([weekday]).run(job, frozenset())

        assert result.helpers == frozenset()
        assert result.stages == []
        assert weekday.calls == []

    def test_criterion_errors_propagate(self, pool):
        job = Job(id=8, title="Undated", author="seeker@email.com", categories=["shopping"])
        pipeline = MatchingPipeline([CategoryCriterion(), WeekdayCriterion()])

        with pytest.raises(InvalidJobDataError):
            pipeline.run(job, pool)


class TestStageStatistics:
    """Tests for per-stage statistics."""

    def test_stage_counts(self, pool, job):
        result = MatchingPipeline([WeekdayCriterion(), CategoryCriterion(), TagCriterion()]).run(
            job, pool
        )

        counts = [(s.criterion, s.input_count, s.output_count) for s in result.stages]
        assert counts == [("weekday", 4, 3), ("category", 3, 2), ("tag", 2, 1)]
        assert result.stages[0].rejected_count == 1
        assert all(stage.duration_seconds >= 0 for stage in result.stages)
        assert all(stage.partitions == 1 for stage in result.stages)

    def test_stage_events_logged(self, pool, job, caplog):
        pipeline = MatchingPipeline([WeekdayCriterion(), CategoryCriterion()])

        with caplog.at_level(logging.DEBUG, logger="helpmatch.matching.pipeline"):
            pipeline.run(job, pool)

        stages = [r for r in caplog.records if getattr(r, "event", None) == "matching.stage.completed"]
        assert [(r.criterion, r.rejected_count) for r in stages] == [("weekday", 1), ("category", 1)]


class TestParallelFiltering:
    """Parallel partitioned filtering must equal the sequential result."""

    @pytest.fixture
    def large_pool(self):
        days = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
        categories = ["shopping", "gardening", "tutoring"]
        return frozenset(
            User(
                email=f"helper{i}@email.com",
                availability=[days[i % 7], days[(i * 3) % 7]],
                categories=[categories[i % 3]],
                tags=["heavy-lifting"] if i % 2 else ["math"],
            )
            for i in range(1000)
        )

    def test_parallel_matches_sequential(self, large_pool, job):
        criteria = [WeekdayCriterion(), CategoryCriterion(), TagCriterion()]
        sequential = MatchingPipeline(criteria)
        parallel = MatchingPipeline(criteria, parallel=True, partition_size=50, max_workers=4)

        expected = sequential.filter(job, large_pool)
        result = parallel.run(job, large_pool)

        assert result.helpers == expected
        assert expected
        assert result.stages[0].partitions == 20

    def test_small_input_is_not_partitioned(self, pool, job):
        pipeline = MatchingPipeline([WeekdayCriterion()], parallel=True, partition_size=50)
        result = pipeline.run(job, pool)
        assert result.stages[0].partitions == 1

    def test_each_partition_is_filtered_once(self, large_pool, job):
        weekday = RecordingCriterion(WeekdayCriterion())
        pipeline = MatchingPipeline([weekday], parallel=True, partition_size=300, max_workers=2)

        pipeline.run(job, large_pool)

        assert len(weekday.calls) == 4
        assert frozenset().union(*weekday.calls) == large_pool
        assert sum(len(part) for part in weekday.calls) == len(large_pool)


class TestConstruction:
    """Tests for building pipelines."""

    def test_rejects_non_criteria(self):
        with pytest.raises(TypeError):
            MatchingPipeline([object()])

    @pytest.mark.parametrize("options", [{"partition_size": 0}, {"max_workers": 0}])
    def test_rejects_non_positive_sizes(self, options):
        with pytest.raises(ValueError):
            MatchingPipeline([WeekdayCriterion()], **options)

    def test_from_names(self):
        pipeline = MatchingPipeline.from_names(["weekday", "tag"], parallel=True)

        assert pipeline.criterion_names == ["weekday", "tag"]
        assert pipeline.parallel

    def test_from_names_unknown(self):
        with pytest.raises(UnknownCriterionError):
            MatchingPipeline.from_names(["weekday", "karma"])

    def test_from_config(self):
        config = MatchingConfig(
            criteria=["category", "weekday"], parallel=True, partition_size=100, max_workers=8
        )

        pipeline = MatchingPipeline.from_config(config)

        assert pipeline.criterion_names == ["category", "weekday"]
        assert pipeline.partition_size == 100
        assert pipeline.max_workers == 8

    def test_repr(self):
        assert "weekday" in repr(MatchingPipeline([WeekdayCriterion()]))
