"""Test configuration."""
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("MIHI_DATA_DIR", tempfile.mkdtemp(prefix="mihi-test-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from mihi.config import PracticeSettings, Settings  # noqa: E402
from mihi.models.base import init_db, make_engine  # noqa: E402
from mihi.models.models import Category, ExerciseKind  # noqa: E402
from mihi.models.practice_models import PracticeItem  # noqa: E402
from mihi.services.exercise_service import ExerciseService  # noqa: E402
from mihi.services.practice_service import PracticeService  # noqa: E402
from mihi.services.tag_service import TagService  # noqa: E402
from mihi.services.word_service import WordService  # noqa: E402

fake = Faker()

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine():
    """A fresh in-memory database for each test."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the documented practice defaults."""
    return Settings(
        practice=PracticeSettings(
            mastery_threshold=3,
            failure_window=10,
            recency_weight=1.0,
            failure_weight=1.0,
            recency_half_life_hours=168,
            word_weight_factor=0.1,
            session_size=15,
            language="latin",
        )
    )


@pytest.fixture
def word_service(db: Session) -> WordService:
    return WordService(db)


@pytest.fixture
def tag_service(db: Session) -> TagService:
    return TagService(db)


@pytest.fixture
def exercise_service(db: Session) -> ExerciseService:
    return ExerciseService(db)


@pytest.fixture
def practice(db: Session, test_settings: Settings) -> PracticeService:
    return PracticeService(db, test_settings)


@pytest.fixture
def make_item(
    word_service: WordService, exercise_service: ExerciseService
) -> Callable[..., PracticeItem]:
    """Create a word and an exercise applying to it, returning the pair."""

    def factory(
        enunciated: str = None,
        title: str = None,
        category: Category = Category.NOUN,
        kind: ExerciseKind = ExerciseKind.TRANSLATION,
        tags=(),
        weight: int = 5,
        flags=(),
    ) -> PracticeItem:
        word = word_service.get_word_by_text(enunciated) if enunciated else None
        if word is None:
            word = word_service.create_word(
                enunciated or fake.unique.word(),
                translation=fake.word(),
                category=category,
                weight=weight,
                tags=tags,
                flags=flags,
            )
        exercise = exercise_service.get_exercise_by_title(title) if title else None
        if exercise is None:
            exercise = exercise_service.create_exercise(
                title or fake.unique.sentence(nb_words=3), kind=kind, word_ids=[word.id]
            )
        else:
            exercise_service.attach_word(exercise.id, word.id)
        return PracticeItem(word.id, exercise.id)

    return factory
