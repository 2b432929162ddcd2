"""Practice service: the entry point used by the command line."""
import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from mihi.config import Settings, settings as default_settings
from mihi.models.base import as_utc, utcnow
from mihi.models.practice_models import (
    ItemStatus,
    Outcome,
    PracticeItem,
    SessionFilters,
)
from mihi.services.attempt_recorder import AttemptRecorder
from mihi.services.item_store import ItemStore
from mihi.services.mastery import MasteryTracker
from mihi.services.scorer import CandidateScorer
from mihi.services.session_selector import SessionSelector

logger = logging.getLogger(__name__)


class PracticeService:
    """Service for building practice sessions and recording answers."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.settings = settings or default_settings
        self.store = ItemStore(db)
        self.tracker = MasteryTracker(self.store, self.settings.practice.mastery_threshold)
        self.scorer = CandidateScorer(self.store, self.settings.practice)
        self.selector = SessionSelector(self.store, self.tracker, self.scorer)
        self.recorder = AttemptRecorder(self.store, self.tracker)

    def build_session(
        self,
        target_size: Optional[int] = None,
        filters: Optional[SessionFilters] = None,
        now: Optional[datetime] = None,
    ) -> List[PracticeItem]:
        """Build the next session, `settings.practice.session_size` items by default."""
        if target_size is None:
            target_size = self.settings.practice.session_size
        return self.selector.build_session(target_size, filters, now)

    def submit(
        self,
        item: PracticeItem,
        outcome: Union[Outcome, bool],
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Record the learner's answer for `item`."""
        self.recorder.submit(item, outcome, timestamp)

    def poke(self, item: PracticeItem) -> None:
        """Force `item` into the next built session."""
        self.store.set_poke(item)

    def find_item(self, enunciated: str, title: str) -> PracticeItem:
        """Get the item for a word and an exercise given by name."""
        return self.store.resolve_item(enunciated, title)

    def item_status(self, item: PracticeItem, now: Optional[datetime] = None) -> ItemStatus:
        """Summarize where `item` stands."""
        self.store.ensure_valid_item(item)
        now = as_utc(now) or utcnow()
        history = self.store.attempt_history(item)
        state = self.tracker.state(item)
        return ItemStatus(
            item=item,
            attempts=len(history),
            trailing_successes=state.trailing_run,
            mastered=self.tracker.is_mastered(item),
            poked=self.store.poke_flag(item),
            score=self.scorer.score_history(history, now, self.store.word_weight(item)),
            last_attempt=history[-1].attempted_at if history else None,
        )
