"""Service for managing words in the system."""
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from mihi.errors import DuplicateEntry
from mihi.models.models import WORD_FLAGS, Category, Tag, Word

logger = logging.getLogger(__name__)

MIN_WEIGHT = 0
MAX_WEIGHT = 10


class WordService:
    """Service for managing words in the system."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def get_word_by_text(self, text: str) -> Optional[Word]:
        """Get a word by its enunciate."""
        return self.db.query(Word).filter(Word.enunciated == text.strip()).first()

    def create_word(
        self,
        enunciated: str,
        translation: str = "",
        category: Union[Category, str] = Category.UNKNOWN,
        weight: int = 5,
        tags: Iterable[str] = (),
        flags: Iterable[str] = (),
    ) -> Word:
        """Create a new word, optionally tagged and with the given flags set."""
        enunciated = enunciated.strip()
        if not enunciated:
            raise ValueError("a word needs an enunciate")
        if self.get_word_by_text(enunciated):
            raise DuplicateEntry(f"word '{enunciated}' already exists")

        word = Word(
            enunciated=enunciated,
            translation=translation.strip(),
            category=Category(category),
            weight=self._check_weight(weight),
            flags={flag: True for flag in self._check_flags(flags)},
        )
        word.tags = [self._require_tag(name) for name in tags]
        self.db.add(word)
        self.db.commit()
        self.db.refresh(word)
        logger.info(f"Created word '{word.enunciated}'")
        return word

    def update_word(self, word_id: int, **kwargs) -> Optional[Word]:
        """Update a word's attributes."""
        word = self.get_word(word_id)
        if not word:
            return None

        if "weight" in kwargs:
            kwargs["weight"] = self._check_weight(kwargs["weight"])
        if "category" in kwargs:
            kwargs["category"] = Category(kwargs["category"])
        if "flags" in kwargs:
            kwargs["flags"] = {flag: True for flag in self._check_flags(kwargs["flags"])}
        for key, value in kwargs.items():
            if hasattr(word, key):
                setattr(word, key, value)

        self.db.commit()
        self.db.refresh(word)
        return word

    def delete_word(self, word_id: int) -> bool:
        """Delete a word together with its practice history."""
        word = self.get_word(word_id)
        if not word:
            return False

        self.db.delete(word)
        self.db.commit()
        logger.info(f"Deleted word '{word.enunciated}'")
        return True

    def search_words(
        self,
        query: Optional[str] = None,
        tags: Iterable[str] = (),
        limit: Optional[int] = None,
    ) -> List[Word]:
        """Search words by enunciate, optionally restricted to any of `tags`."""
        search_query = self.db.query(Word)
        if query:
            search_query = search_query.filter(Word.enunciated.ilike(f"%{query}%"))
        tags = [t.strip() for t in tags]
        if tags:
            search_query = search_query.filter(Word.tags.any(Tag.name.in_(tags)))
        search_query = search_query.order_by(Word.enunciated)
        if limit:
            search_query = search_query.limit(limit)
        return search_query.all()

    def get_word_count(self) -> int:
        """Get the count of words in the database."""
        return self.db.query(Word).count()

    def attach_tag(self, word_id: int, tag_name: str) -> Word:
        """Tag a word."""
        word = self._require_word(word_id)
        tag = self._require_tag(tag_name)
        if tag not in word.tags:
            word.tags.append(tag)
            self.db.commit()
        return word

    def detach_tag(self, word_id: int, tag_name: str) -> Word:
        """Remove a tag from a word. Unknown tags are ignored."""
        word = self._require_word(word_id)
        word.tags = [tag for tag in word.tags if tag.name != tag_name.strip()]
        self.db.commit()
        return word

    def set_flag(self, word_id: int, flag: str, value: bool = True) -> Word:
        """Set or clear a boolean flag on a word."""
        word = self._require_word(word_id)
        (flag,) = self._check_flags([flag])
        flags = dict(word.flags or {})
        if value:
            flags[flag] = True
        else:
            flags.pop(flag, None)
        word.flags = flags
        self.db.commit()
        return word

    def _require_word(self, word_id: int) -> Word:
        word = self.get_word(word_id)
        if not word:
            raise ValueError(f"Word {word_id} not found")
        return word

    def _require_tag(self, name: str) -> Tag:
        tag = self.db.query(Tag).filter(Tag.name == name.strip()).first()
        if not tag:
            raise ValueError(f"Tag '{name}' not found")
        return tag

    @staticmethod
    def _check_weight(weight: int) -> int:
        if weight < MIN_WEIGHT or weight > MAX_WEIGHT:
            raise ValueError(
                f"weight has to be an integer between {MIN_WEIGHT} and {MAX_WEIGHT}, but {weight} was given"
            )
        return weight

    @staticmethod
    def _check_flags(flags: Iterable[str]) -> List[str]:
        flags = [flag.strip().lower() for flag in flags]
        unknown = [flag for flag in flags if flag not in WORD_FLAGS]
        if unknown:
            raise ValueError(f"unknown word flag(s): {', '.join(unknown)}")
        return flags
