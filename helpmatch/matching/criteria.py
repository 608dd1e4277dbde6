"""Matching criteria: independent filters over a candidate pool.

Every criterion satisfies the ``MatchingCriterion`` protocol: given a job and
a set of candidates it returns the subset of candidates that pass. Criteria
carry no per-request state, so a single instance can be shared by every
pipeline and thread.

New criteria plug in by subclassing ``PredicateCriterion`` (or implementing
the protocol directly) and registering under a name::

    @register_criterion("rating")
    @dataclass(frozen=True)
    class RatingCriterion(PredicateCriterion):
        minimum: float = 4.0

        def requirement(self, job):
            return self.minimum

        def satisfies(self, requirement, user):
            return user.rating >= requirement

Configuration refers to criteria by their registered names.
"""

from dataclasses import dataclass
from typing import (
    AbstractSet,
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Protocol,
    Type,
    runtime_checkable,
)

from helpmatch.domain.models import Job, User, Weekday
from helpmatch.utils.timestamps import parse_iso_date

from .exceptions import InvalidJobDataError, UnknownCriterionError


@runtime_checkable
class MatchingCriterion(Protocol):
    """Protocol for a single matching criterion."""

    name: str

    def filter(self, job: Job, candidates: AbstractSet[User]) -> FrozenSet[User]:
        """Return the candidates that satisfy this criterion for ``job``."""
        ...


class PredicateCriterion:
    """Base class for criteria that judge each candidate on its own.

    Subclasses implement two hooks:
    - ``requirement(job)``: extract (and validate) what the job asks for.
      Raises InvalidJobDataError when the job data cannot be evaluated.
    - ``satisfies(requirement, user)``: decide one candidate.

    The job is validated before the pool is inspected, so malformed job data
    is reported even when there are no candidates.
    """

    name: ClassVar[str] = ""

    def requirement(self, job: Job) -> Any:
        raise NotImplementedError

    def satisfies(self, requirement: Any, user: User) -> bool:
        raise NotImplementedError

    def accepts(self, job: Job, user: User) -> bool:
        """Decide a single candidate against ``job``."""
        return self.satisfies(self.requirement(job), user)

    def filter(self, job: Job, candidates: AbstractSet[User]) -> FrozenSet[User]:
        requirement = self.requirement(job)
        return frozenset(user for user in candidates if self.satisfies(requirement, user))

    def __str__(self) -> str:
        return self.name or type(self).__name__


_REGISTRY: Dict[str, Type[MatchingCriterion]] = {}


def register_criterion(name: str) -> Callable[[Type], Type]:
    """Class decorator registering a criterion under ``name``.

    The name is also set as the class's ``name`` attribute.
    """

    def decorator(cls: Type) -> Type:
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ValueError(f"Criterion name already registered: {name}")
        cls.name = name
        _REGISTRY[name] = cls
        return cls

    return decorator


def available_criteria() -> List[str]:
    """Names of all registered criteria, sorted."""
    return sorted(_REGISTRY)


def get_criterion(name: str) -> MatchingCriterion:
    """Instantiate the criterion registered under ``name``.

    Raises:
        UnknownCriterionError: If no criterion has that name
    """
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise UnknownCriterionError(name, available_criteria())
    return _REGISTRY[key]()


def build_criteria(names: Iterable[str]) -> List[MatchingCriterion]:
    """Instantiate criteria in the given order."""
    return [get_criterion(name) for name in names]


def _label_names(job: Job, attribute: str) -> FrozenSet[str]:
    raw = getattr(job, attribute, None)
    if raw is None:
        raise InvalidJobDataError(f"{attribute} are missing", job_id=getattr(job, "id", None))
    if isinstance(raw, str):
        raise InvalidJobDataError(
            f"{attribute} must be a collection, got a string", job_id=getattr(job, "id", None)
        )

    names = set()
    try:
        for item in raw:
            label = item if isinstance(item, str) else item.name
            names.add(label.strip().lower())
    except (TypeError, AttributeError) as e:
        raise InvalidJobDataError(
            f"{attribute} are malformed: {e}", job_id=getattr(job, "id", None)
        ) from e
    return frozenset(names)


@register_criterion("weekday")
@dataclass(frozen=True)
class WeekdayCriterion(PredicateCriterion):
    """Keeps candidates available on the weekday of the job's due date."""

    def requirement(self, job: Job) -> Weekday:
        job_id = getattr(job, "id", None)
        raw = getattr(job, "due_date", None)
        if raw is None:
            stored = getattr(job, "invalid_due_date", None)
            if stored:
                raise InvalidJobDataError(
                    f"stored due date {stored!r} is not a valid calendar date", job_id=job_id
                )
            raise InvalidJobDataError("due date is missing", job_id=job_id)

        due_date = parse_iso_date(raw)
        if due_date is None:
            raise InvalidJobDataError(
                f"due date {raw!r} is not a valid calendar date", job_id=job_id
            )
        return Weekday.from_date(due_date)

    def satisfies(self, requirement: Weekday, user: User) -> bool:
        return user.is_available_on(requirement)


@register_criterion("category")
@dataclass(frozen=True)
class CategoryCriterion(PredicateCriterion):
    """Keeps candidates sharing at least one category with the job."""

    def requirement(self, job: Job) -> FrozenSet[str]:
        return _label_names(job, "categories")

    def satisfies(self, requirement: FrozenSet[str], user: User) -> bool:
        return not requirement.isdisjoint(user.category_names)


@register_criterion("tag")
@dataclass(frozen=True)
class TagCriterion(PredicateCriterion):
    """Keeps candidates sharing at least one tag with the job."""

    def requirement(self, job: Job) -> FrozenSet[str]:
        return _label_names(job, "tags")

    def satisfies(self, requirement: FrozenSet[str], user: User) -> bool:
        return not requirement.isdisjoint(user.tag_names)
