"""Attempt recording."""
from datetime import datetime
from typing import Optional, Union

from mihi import monitoring
from mihi.models.base import as_utc, utcnow
from mihi.models.practice_models import Outcome, PracticeItem
from mihi.services.item_store import ItemStore
from mihi.services.mastery import MasteryTracker


class AttemptRecorder:
    """Stores the outcome of each presented item."""

    def __init__(self, store: ItemStore, tracker: MasteryTracker):
        self.store = store
        self.tracker = tracker

    def submit(
        self,
        item: PracticeItem,
        outcome: Union[Outcome, bool],
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Append a new attempt for `item` and update its mastery state."""
        if isinstance(outcome, bool):
            outcome = Outcome.from_bool(outcome)
        timestamp = as_utc(timestamp) or utcnow()
        with self.store.transaction():
            self.store.append_attempt(item, outcome, timestamp)
        self.tracker.record_outcome(item, outcome, timestamp)
        monitoring.attempts_recorded.labels(outcome=outcome.value).inc()
