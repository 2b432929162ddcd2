"""Service for managing exercises and the words they apply to."""
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from mihi.errors import DuplicateEntry
from mihi.models.models import Exercise, ExerciseKind, Word

logger = logging.getLogger(__name__)


class ExerciseService:
    """Service for managing exercises."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        """Get an exercise by its ID."""
        return self.db.query(Exercise).filter(Exercise.id == exercise_id).first()

    def get_exercise_by_title(self, title: str) -> Optional[Exercise]:
        """Get an exercise by its title."""
        return self.db.query(Exercise).filter(Exercise.title == title.strip()).first()

    def create_exercise(
        self,
        title: str,
        kind: Union[ExerciseKind, str] = ExerciseKind.PENSUM,
        enunciate: str = "",
        solution: str = "",
        lessons: str = "",
        word_ids: Iterable[int] = (),
    ) -> Exercise:
        """Create an exercise applying to the given words."""
        title = title.strip()
        if not title:
            raise ValueError("an exercise needs a title")
        if self.get_exercise_by_title(title):
            raise DuplicateEntry(f"exercise '{title}' already exists")

        exercise = Exercise(
            title=title,
            kind=ExerciseKind(kind),
            enunciate=enunciate,
            solution=solution,
            lessons=lessons,
        )
        exercise.words = self._require_words(word_ids)
        self.db.add(exercise)
        self.db.commit()
        self.db.refresh(exercise)
        logger.info(f"Created exercise '{exercise.title}' ({exercise.kind.value})")
        return exercise

    def list_titles(self, filter: Optional[str] = None) -> List[str]:
        """Titles of the exercises containing `filter`, or all of them."""
        query = self.db.query(Exercise.title)
        if filter:
            query = query.filter(Exercise.title.contains(filter.strip()))
        return [title for (title,) in query.order_by(Exercise.title)]

    def update_exercise(self, exercise_id: int, **kwargs) -> Optional[Exercise]:
        """Update an exercise's attributes."""
        exercise = self.get_exercise(exercise_id)
        if not exercise:
            return None

        if "kind" in kwargs:
            kwargs["kind"] = ExerciseKind(kwargs["kind"])
        for key, value in kwargs.items():
            if hasattr(exercise, key):
                setattr(exercise, key, value)

        self.db.commit()
        self.db.refresh(exercise)
        return exercise

    def delete_exercise(self, title: str) -> bool:
        """Delete an exercise together with its practice history."""
        exercise = self.get_exercise_by_title(title)
        if not exercise:
            return False
        self.db.delete(exercise)
        self.db.commit()
        return True

    def attach_word(self, exercise_id: int, word_id: int) -> Exercise:
        """Make an exercise apply to one more word."""
        exercise = self.get_exercise(exercise_id)
        if not exercise:
            raise ValueError(f"Exercise {exercise_id} not found")
        word = self._require_words([word_id])[0]
        if word not in exercise.words:
            exercise.words.append(word)
            self.db.commit()
        return exercise

    def _require_words(self, word_ids: Iterable[int]) -> List[Word]:
        word_ids = list(word_ids)
        if not word_ids:
            return []
        words = self.db.query(Word).filter(Word.id.in_(word_ids)).all()
        missing = set(word_ids) - {word.id for word in words}
        if missing:
            raise ValueError(f"Word(s) not found: {sorted(missing)}")
        return words
