"""Session selection: decide which items to present next."""
import logging
from datetime import datetime
from typing import List, Optional

from mihi import monitoring
from mihi.models.base import as_utc, utcnow
from mihi.models.practice_models import PracticeItem, SessionFilters
from mihi.services.item_store import ItemStore
from mihi.services.mastery import MasteryTracker
from mihi.services.scorer import CandidateScorer

logger = logging.getLogger(__name__)


class SessionSelector:
    """Builds ordered practice sessions."""

    def __init__(self, store: ItemStore, tracker: MasteryTracker, scorer: CandidateScorer):
        self.store = store
        self.tracker = tracker
        self.scorer = scorer

    def build_session(
        self,
        target_size: int,
        filters: Optional[SessionFilters] = None,
        now: Optional[datetime] = None,
    ) -> List[PracticeItem]:
        """Build the next session.

        Every poked item allowed by the filters comes first, even if that
        goes over `target_size`, and its poke is consumed. The remaining
        slots are filled with items that are not mastered, best score
        first. An empty list means there is nothing to practice.
        """
        if target_size < 0:
            raise ValueError(f"session size cannot be negative, got {target_size}")
        filters = filters or SessionFilters()
        now = as_utc(now) or utcnow()

        with self.store.transaction():
            eligible = self.store.list_eligible_items(filters)
            poked = [item for item in eligible if self.store.poke_flag(item)]
            poked_set = set(poked)

            candidates = [
                item
                for item in eligible
                if item not in poked_set and not self.tracker.is_mastered(item)
            ]
            free_slots = max(target_size - len(poked), 0)
            ranked = self.scorer.rank(candidates, now)[:free_slots]

            for item in poked:
                self.store.clear_poke(item)

        session = poked + ranked
        logger.info(
            f"Built session with {len(session)} item(s): "
            f"{len(poked)} poked, {len(ranked)} ranked out of {len(candidates)} candidate(s)"
        )
        monitoring.sessions_built.inc()
        monitoring.session_size.observe(len(session))
        monitoring.pokes_consumed.inc(len(poked))
        return session
