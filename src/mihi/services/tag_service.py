"""Service for managing tags."""
from typing import List, Optional

from sqlalchemy.orm import Session

from mihi.errors import DuplicateEntry
from mihi.models.models import Tag


class TagService:
    """Service for managing tags."""

    def __init__(self, db: Session):
        self.db = db

    def get_tag_by_name(self, name: str) -> Optional[Tag]:
        return self.db.query(Tag).filter(Tag.name == name.strip()).first()

    def create_tag(self, name: str) -> Tag:
        """Create a tag with the given (trimmed) name."""
        name = name.strip()
        if not name:
            raise ValueError("a tag needs a name")
        if self.get_tag_by_name(name):
            raise DuplicateEntry(f"tag '{name}' already exists")
        tag = Tag(name=name)
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        return tag

    def list_tag_names(self, filter: Optional[str] = None) -> List[str]:
        """Names of the tags containing `filter`, or all of them."""
        query = self.db.query(Tag.name)
        if filter:
            query = query.filter(Tag.name.contains(filter.strip()))
        return [name for (name,) in query.order_by(Tag.name)]

    def delete_tag(self, name: str) -> bool:
        tag = self.get_tag_by_name(name)
        if not tag:
            return False
        self.db.delete(tag)
        self.db.commit()
        return True
