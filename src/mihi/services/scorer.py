"""Candidate scoring: rank items by staleness and recent failures."""
from datetime import datetime
from typing import List, Optional, Sequence

from mihi.config import PracticeSettings, settings
from mihi.models.base import as_utc
from mihi.models.practice_models import AttemptRecord, PracticeItem
from mihi.services.item_store import ItemStore

MAX_WORD_WEIGHT = 10


class CandidateScorer:
    """Assigns each practice item a priority score, higher first.

    The score adds three terms:

    * recency: 1.0 for items never attempted, otherwise
      ``elapsed / (elapsed + half_life)`` with the elapsed time in hours,
      which stays strictly below 1.0;
    * failure rate over the most recent ``failure_window`` attempts;
    * the word weight scaled to 0..1.

    Each term is multiplied by its configured weight.
    """

    def __init__(self, store: ItemStore, practice: Optional[PracticeSettings] = None):
        self.store = store
        self.practice = practice or settings.practice

    def recency(self, history: Sequence[AttemptRecord], now: datetime) -> float:
        if not history:
            return 1.0
        last = history[-1].attempted_at
        elapsed = max((as_utc(now) - as_utc(last)).total_seconds() / 3600.0, 0.0)
        return elapsed / (elapsed + self.practice.recency_half_life_hours)

    def failure_rate(self, history: Sequence[AttemptRecord]) -> float:
        recent = history[-self.practice.failure_window:]
        if not recent:
            return 0.0
        failures = sum(1 for attempt in recent if not attempt.outcome.succeeded)
        return failures / len(recent)

    def score_history(
        self, history: Sequence[AttemptRecord], now: datetime, weight: int = 0
    ) -> float:
        """Score an item from its attempt history and word weight."""
        return (
            self.practice.recency_weight * self.recency(history, now)
            + self.practice.failure_weight * self.failure_rate(history)
            + self.practice.word_weight_factor
            * min(max(weight, 0), MAX_WORD_WEIGHT) / MAX_WORD_WEIGHT
        )

    def score(self, item: PracticeItem, now: datetime) -> float:
        """Priority of `item` at time `now`."""
        history = self.store.attempt_history(item)
        return self.score_history(history, now, self.store.word_weight(item))

    def rank(self, items: Sequence[PracticeItem], now: datetime) -> List[PracticeItem]:
        """Sort `items` by descending score, ties by item order."""
        scores = {item: self.score(item, now) for item in items}
        return sorted(items, key=lambda item: (-scores[item], item))
