"""Item store adapter: access to words, exercises, attempts and pokes."""
import functools
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import and_, or_, true
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from mihi import monitoring
from mihi.errors import InvalidFilter, InvalidItem, StoreError, StoreUnavailable
from mihi.models.base import as_utc, utcnow
from mihi.models.models import (
    WORD_FLAGS,
    Attempt,
    Exercise,
    Poke,
    PokeStatus,
    Tag,
    Word,
    exercise_words,
)
from mihi.models.practice_models import (
    AttemptRecord,
    Outcome,
    PracticeItem,
    SessionFilters,
)

logger = logging.getLogger(__name__)


def translate_errors(method):
    """Turn SQLAlchemy failures into StoreUnavailable/StoreError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except OperationalError as e:
            self._on_failure(method.__name__, e)
            raise StoreUnavailable(f"item store unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            self._on_failure(method.__name__, e)
            raise StoreError(f"item store failure in {method.__name__}: {e}") from e

    return wrapper


class ItemStore:
    """Read and write access to practice items and their history.

    Writes are committed right away unless they happen inside a
    `transaction()` block, in which case the outermost block commits them
    all at once.
    """

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db
        self._depth = 0

    def _on_failure(self, operation: str, error: Exception) -> None:
        logger.error(f"Item store error during {operation}: {error}")
        monitoring.store_errors.labels(error_type=type(error).__name__).inc()
        if self._depth == 0:
            self.db.rollback()

    @translate_errors
    def _commit(self) -> None:
        if self._depth == 0:
            self.db.commit()
        else:
            self.db.flush()

    @contextmanager
    def transaction(self) -> Iterator["ItemStore"]:
        """Group several writes so they are committed atomically."""
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
            raise
        self._depth -= 1
        self._commit()

    @translate_errors
    def validate_filters(self, filters: SessionFilters) -> None:
        """Raise InvalidFilter if the filters name unknown tags or word flags."""
        unknown_flags = sorted(filters.flags - set(WORD_FLAGS))
        if unknown_flags:
            raise InvalidFilter(f"unknown flag(s): {', '.join(unknown_flags)}")
        if not filters.tags:
            return
        known = {
            name
            for (name,) in self.db.query(Tag.name).filter(Tag.name.in_(list(filters.tags)))
        }
        missing = sorted(filters.tags - known)
        if missing:
            raise InvalidFilter(f"unknown tag(s): {', '.join(missing)}")

    @translate_errors
    def list_eligible_items(self, filters: Optional[SessionFilters] = None) -> List[PracticeItem]:
        """Return every (word, exercise) pair allowed by the filters.

        Items come back ordered by word and exercise identifiers.
        """
        filters = filters or SessionFilters()
        self.validate_filters(filters)

        query = (
            self.db.query(exercise_words.c.word_id, exercise_words.c.exercise_id)
            .select_from(exercise_words)
            .join(Word, Word.id == exercise_words.c.word_id)
            .join(Exercise, Exercise.id == exercise_words.c.exercise_id)
        )
        if filters.exercise_kinds:
            query = query.filter(Exercise.kind.in_(list(filters.exercise_kinds)))
        if filters.categories:
            query = query.filter(Word.category.in_(list(filters.categories)))
        if filters.tags:
            query = query.filter(Word.tags.any(Tag.name.in_(list(filters.tags))))
        if filters.flags:
            query = query.filter(
                or_(*(Word.flags[flag].as_boolean() == true() for flag in sorted(filters.flags)))
            )

        rows = query.order_by(exercise_words.c.word_id, exercise_words.c.exercise_id).all()
        return [PracticeItem(word_id, exercise_id) for word_id, exercise_id in rows]

    @translate_errors
    def is_valid_item(self, item: PracticeItem) -> bool:
        """Whether the exercise of `item` applies to its word."""
        row = (
            self.db.query(exercise_words)
            .filter(
                and_(
                    exercise_words.c.word_id == item.word_id,
                    exercise_words.c.exercise_id == item.exercise_id,
                )
            )
            .first()
        )
        return row is not None

    def ensure_valid_item(self, item: PracticeItem) -> None:
        """Raise InvalidItem unless `item` is a valid pair."""
        if not self.is_valid_item(item):
            raise InvalidItem(
                f"exercise {item.exercise_id} does not apply to word {item.word_id}"
            )

    @translate_errors
    def resolve_item(self, enunciated: str, title: str) -> PracticeItem:
        """Find the item for a word text and an exercise title."""
        word = self.db.query(Word).filter(Word.enunciated == enunciated.strip()).first()
        if not word:
            raise InvalidItem(f"word '{enunciated}' not found")
        exercise = self.db.query(Exercise).filter(Exercise.title == title.strip()).first()
        if not exercise:
            raise InvalidItem(f"exercise '{title}' not found")
        item = PracticeItem(word.id, exercise.id)
        self.ensure_valid_item(item)
        return item

    @translate_errors
    def attempt_history(self, item: PracticeItem) -> List[AttemptRecord]:
        """Return every attempt for `item`, oldest first."""
        rows = (
            self.db.query(Attempt)
            .filter(
                Attempt.word_id == item.word_id,
                Attempt.exercise_id == item.exercise_id,
            )
            .order_by(Attempt.attempted_at, Attempt.id)
            .all()
        )
        return [
            AttemptRecord(
                item=item,
                outcome=Outcome.from_bool(row.succeeded),
                attempted_at=as_utc(row.attempted_at),
            )
            for row in rows
        ]

    @translate_errors
    def word_weight(self, item: PracticeItem) -> int:
        """Return the weight of the word behind `item`."""
        weight = self.db.query(Word.weight).filter(Word.id == item.word_id).scalar()
        if weight is None:
            raise InvalidItem(f"word {item.word_id} not found")
        return weight

    @translate_errors
    def append_attempt(
        self, item: PracticeItem, outcome: Outcome, timestamp: Optional[datetime] = None
    ) -> None:
        """Append a new attempt for `item`. Existing attempts are never touched."""
        self.ensure_valid_item(item)
        attempt = Attempt(
            word_id=item.word_id,
            exercise_id=item.exercise_id,
            succeeded=outcome.succeeded,
            attempted_at=as_utc(timestamp) or utcnow(),
        )
        self.db.add(attempt)
        self._commit()
        logger.debug(f"Recorded {outcome.value} for item {item}")

    def _get_poke(self, item: PracticeItem) -> Optional[Poke]:
        return self.db.get(Poke, (item.word_id, item.exercise_id))

    @translate_errors
    def poke_flag(self, item: PracticeItem) -> bool:
        """Whether `item` is waiting to be forced into the next session."""
        poke = self._get_poke(item)
        return poke is not None and poke.status == PokeStatus.PENDING

    @translate_errors
    def set_poke(self, item: PracticeItem) -> None:
        """Mark `item` to be included in the next built session."""
        self.ensure_valid_item(item)
        poke = self._get_poke(item)
        if poke is None:
            poke = Poke(word_id=item.word_id, exercise_id=item.exercise_id)
            self.db.add(poke)
        poke.status = PokeStatus.PENDING
        poke.poked_at = utcnow()
        poke.consumed_at = None
        self._commit()
        logger.info(f"Poked item {item}")

    @translate_errors
    def clear_poke(self, item: PracticeItem) -> bool:
        """Consume the pending poke for `item`.

        Returns False if there was nothing to consume.
        """
        poke = self._get_poke(item)
        if poke is None or poke.status != PokeStatus.PENDING:
            return False
        poke.status = PokeStatus.CONSUMED
        poke.consumed_at = utcnow()
        self._commit()
        return True
