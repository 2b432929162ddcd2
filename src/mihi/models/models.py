"""Database models for mihi."""
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from mihi.models.base import Base, TimestampMixin, utcnow


class Category(Enum):
    """Part of speech of a word."""
    UNKNOWN = "unknown"
    NOUN = "noun"
    ADJECTIVE = "adjective"
    VERB = "verb"
    PRONOUN = "pronoun"
    ADVERB = "adverb"
    PREPOSITION = "preposition"
    CONJUNCTION = "conjunction"
    INTERJECTION = "interjection"
    DETERMINER = "determiner"


class ExerciseKind(Enum):
    """The skill an exercise is testing."""
    PENSUM = "pensum"
    TRANSLATION = "translation"
    TRANSFORMATION = "transformation"
    NUMERICAL = "numerical"
    INFLECTION = "inflection"


# Boolean properties a word may carry, used to narrow down practice sessions.
WORD_FLAGS = (
    "deponent",
    "onlysingular",
    "onlyplural",
    "contracted_root",
    "nonpositive",
    "compsup_prefix",
    "indeclinable",
    "irregularsup",
    "nopassive",
    "nosupine",
    "noperfect",
    "nogerundive",
    "impersonal",
    "impersonalpassive",
    "noimperative",
    "noinfinitive",
    "shortimperative",
    "onlythirdpassive",
    "enclitic",
    "notcomparable",
    "onlyperfect",
    "semideponent",
    "contracted_vocative",
)


class PokeStatus(Enum):
    """Lifecycle of a poke: set by the learner, consumed by a session."""
    PENDING = "pending"
    CONSUMED = "consumed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


tag_associations = Table(
    "tag_associations",
    Base.metadata,
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("word_id", Integer, ForeignKey("words.id", ondelete="CASCADE"), primary_key=True),
)

exercise_words = Table(
    "exercise_words",
    Base.metadata,
    Column(
        "exercise_id",
        Integer,
        ForeignKey("exercises.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("word_id", Integer, ForeignKey("words.id", ondelete="CASCADE"), primary_key=True),
)


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    enunciated = Column(String, unique=True, nullable=False)
    translation = Column(String, nullable=False, default="")
    category = Column(
        SQLEnum(Category, name="category", values_callable=_enum_values),
        nullable=False,
        default=Category.UNKNOWN,
    )
    weight = Column(Integer, nullable=False, default=5)  # 0-10
    flags = Column(JSON, nullable=False, default=dict)  # flag name -> bool

    # Relationships
    tags = relationship("Tag", secondary=tag_associations, back_populates="words")
    exercises = relationship("Exercise", secondary=exercise_words, back_populates="words")

    def is_flag_set(self, flag: str) -> bool:
        return bool((self.flags or {}).get(flag, False))

    def __repr__(self) -> str:
        return f"<Word {self.id} {self.enunciated!r}>"


class Tag(Base, TimestampMixin):
    """Tag model."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    # Relationships
    words = relationship("Word", secondary=tag_associations, back_populates="tags")

    def __repr__(self) -> str:
        return f"<Tag {self.id} {self.name!r}>"


class Exercise(Base, TimestampMixin):
    """Exercise model."""

    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    title = Column(String, unique=True, nullable=False)
    enunciate = Column(Text, nullable=False, default="")
    solution = Column(Text, nullable=False, default="")
    lessons = Column(String, nullable=False, default="")
    kind = Column(
        SQLEnum(ExerciseKind, name="exercise_kind", values_callable=_enum_values),
        nullable=False,
        default=ExerciseKind.PENSUM,
    )

    # Relationships
    words = relationship("Word", secondary=exercise_words, back_populates="exercises")

    def __repr__(self) -> str:
        return f"<Exercise {self.id} {self.title!r}>"


class Attempt(Base):
    """One presentation of a word/exercise pair. Rows are never updated."""

    __tablename__ = "attempts"
    __table_args__ = (
        Index("ix_attempts_item_time", "word_id", "exercise_id", "attempted_at"),
    )

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    exercise_id = Column(
        Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    succeeded = Column(Boolean, nullable=False)
    attempted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Poke(Base):
    """Forced inclusion of a word/exercise pair in the next session."""

    __tablename__ = "pokes"

    word_id = Column(
        Integer, ForeignKey("words.id", ondelete="CASCADE"), primary_key=True
    )
    exercise_id = Column(
        Integer, ForeignKey("exercises.id", ondelete="CASCADE"), primary_key=True
    )
    status = Column(
        SQLEnum(PokeStatus, name="poke_status", values_callable=_enum_values),
        nullable=False,
        default=PokeStatus.PENDING,
    )
    poked_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    consumed_at = Column(DateTime(timezone=True))
