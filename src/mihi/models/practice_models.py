"""Plain data structures used by the practice engine."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from mihi.errors import InvalidFilter
from mihi.models.models import WORD_FLAGS, Category, ExerciseKind


class Outcome(Enum):
    """Result of presenting a practice item to the learner."""
    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_bool(cls, succeeded: bool) -> "Outcome":
        return cls.SUCCESS if succeeded else cls.FAILURE

    @property
    def succeeded(self) -> bool:
        return self is Outcome.SUCCESS


@dataclass(frozen=True, order=True)
class PracticeItem:
    """A (word, exercise) pair, the unit the scheduler reasons about.

    Items are ordered by identifiers so that ties in ranking resolve the
    same way on every run.
    """
    word_id: int
    exercise_id: int

    def __str__(self) -> str:
        return f"{self.word_id}/{self.exercise_id}"


@dataclass(frozen=True)
class AttemptRecord:
    """Read-only view of a stored attempt."""
    item: PracticeItem
    outcome: Outcome
    attempted_at: datetime


@dataclass(frozen=True)
class SessionFilters:
    """Restrictions applied when building a session.

    Words match `tags` if they carry any of them, and `flags` if any of them
    is set on the word. Empty sets mean no restriction.
    """
    tags: FrozenSet[str] = field(default_factory=frozenset)
    exercise_kinds: FrozenSet[ExerciseKind] = field(default_factory=frozenset)
    categories: FrozenSet[Category] = field(default_factory=frozenset)
    flags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        tags: Optional[Iterable[str]] = None,
        exercise_kinds: Optional[Iterable[str]] = None,
        categories: Optional[Iterable[str]] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> "SessionFilters":
        """Build filters from raw values.

        Unknown kinds, categories or word flags raise InvalidFilter. Tag
        names are only trimmed here; their existence is checked against the
        store.
        """
        def parse(values, enum_cls, label):
            parsed = set()
            for value in values or ():
                if isinstance(value, enum_cls):
                    parsed.add(value)
                    continue
                try:
                    parsed.add(enum_cls(str(value).strip().lower()))
                except ValueError:
                    available = ", ".join(member.value for member in enum_cls)
                    raise InvalidFilter(
                        f"unknown {label} '{value}'. Available: {available}"
                    ) from None
            return frozenset(parsed)

        parsed_flags = set()
        for flag in flags or ():
            flag = flag.strip().lower()
            if flag not in WORD_FLAGS:
                raise InvalidFilter(
                    f"unknown flag '{flag}'. Available: {', '.join(WORD_FLAGS)}"
                )
            parsed_flags.add(flag)

        return cls(
            tags=frozenset(t.strip() for t in tags or () if t.strip()),
            exercise_kinds=parse(exercise_kinds, ExerciseKind, "exercise kind"),
            categories=parse(categories, Category, "category"),
            flags=frozenset(parsed_flags),
        )


@dataclass(frozen=True)
class ItemStatus:
    """Summary of the practice state of one item."""
    item: PracticeItem
    attempts: int
    trailing_successes: int
    mastered: bool
    poked: bool
    score: float
    last_attempt: Optional[datetime] = None
