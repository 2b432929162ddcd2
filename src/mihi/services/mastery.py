"""Mastery tracking: decide whether an item is solved for now."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional

from mihi.config import settings
from mihi.models.practice_models import Outcome, PracticeItem
from mihi.services.item_store import ItemStore

logger = logging.getLogger(__name__)


def trailing_successes(outcomes: Iterable[Outcome]) -> int:
    """Length of the run of successes at the end of `outcomes`."""
    run = 0
    for outcome in outcomes:
        run = run + 1 if outcome.succeeded else 0
    return run


@dataclass
class MasteryState:
    """Derived state of an item, rebuilt from its attempt history."""
    attempts: int = 0
    trailing_run: int = 0
    last_attempt: Optional[datetime] = None

    def record(self, outcome: Outcome, attempted_at: Optional[datetime] = None) -> None:
        self.attempts += 1
        if attempted_at is not None:
            self.last_attempt = attempted_at
        if outcome.succeeded:
            self.trailing_run += 1
        else:
            self.trailing_run = 0


class MasteryTracker:
    """Tracks the trailing success run of each practice item.

    The attempt history in the store is the source of truth. States are
    cached in memory and advanced by `record_outcome` once the attempt has
    been stored; items that are not cached are recomputed on demand.
    """

    def __init__(self, store: ItemStore, threshold: Optional[int] = None):
        self.store = store
        self.threshold = settings.practice.mastery_threshold if threshold is None else threshold
        if self.threshold < 1:
            raise ValueError("mastery threshold must be positive")
        self._states: Dict[PracticeItem, MasteryState] = {}

    def state(self, item: PracticeItem) -> MasteryState:
        """Return the derived state for `item`, loading it if needed."""
        state = self._states.get(item)
        if state is None:
            state = MasteryState()
            for attempt in self.store.attempt_history(item):
                state.record(attempt.outcome, attempt.attempted_at)
            self._states[item] = state
        return state

    def is_mastered(self, item: PracticeItem) -> bool:
        """Whether the last `threshold` attempts on `item` all succeeded."""
        return self.state(item).trailing_run >= self.threshold

    def record_outcome(
        self,
        item: PracticeItem,
        outcome: Outcome,
        attempted_at: Optional[datetime] = None,
    ) -> None:
        """Advance the cached state of `item` with a freshly stored outcome.

        An outcome stored with a timestamp older than the latest known attempt
        lands in the middle of the history, so the cached state is dropped and
        rebuilt on the next lookup instead.
        """
        state = self._states.get(item)
        if state is None:
            # Nothing cached: the next lookup reads the outcome from history
            return
        if (
            attempted_at is not None
            and state.last_attempt is not None
            and attempted_at < state.last_attempt
        ):
            logger.debug(f"Out of order attempt for item {item}, reloading its state")
            self.forget(item)
            return
        was_mastered = state.trailing_run >= self.threshold
        state.record(outcome, attempted_at)
        if not was_mastered and state.trailing_run >= self.threshold:
            logger.info(f"Item {item} is now solved for now")
        elif was_mastered and not outcome.succeeded:
            logger.info(f"Item {item} dropped out of mastery")

    def forget(self, item: Optional[PracticeItem] = None) -> None:
        """Drop cached state for `item`, or for every item."""
        if item is None:
            self._states.clear()
        else:
            self._states.pop(item, None)
