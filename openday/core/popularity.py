"""
Popularity Tracking
Counts how often events are viewed and added to schedules
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Type

import numpy as np

from config.scoring_config import ScoringConfig
from ..schemas import EventPopularity

logger = logging.getLogger(__name__)


def popularity_score(views: int, adds: int, scoring: Type[ScoringConfig] = ScoringConfig) -> int:
    """Schedule adds weigh ten views; capped at 100"""
    points = views * scoring.POPULARITY_VIEW_POINTS + adds * scoring.POPULARITY_SCHEDULE_POINTS
    return min(100, points // scoring.POPULARITY_DIVISOR)


def popularity_trend(views: int, adds: int, scoring: Type[ScoringConfig] = ScoringConfig) -> str:
    if adds > 0 and (views == 0 or adds / views >= scoring.TREND_RISING_CONVERSION):
        return 'rising'
    if views >= scoring.TREND_FALLING_MIN_VIEWS and adds == 0:
        return 'falling'
    return 'stable'


def high_demand_threshold(scores: Iterable[float], percentile: float = ScoringConfig.HIGH_DEMAND_PERCENTILE) -> float:
    """Score an event must exceed to count as high demand"""
    values = np.asarray(list(scores), dtype=float)
    if values.size == 0:
        return 0.0
    return float(np.percentile(values, percentile))


class PopularityStore(ABC):
    """Interface for popularity counters"""

    @abstractmethod
    def track_view(self, event_id: str) -> None:
        pass

    @abstractmethod
    def track_scheduled(self, event_id: str) -> None:
        pass

    @abstractmethod
    def get_popularity(self, event_id: str) -> EventPopularity:
        pass

    @abstractmethod
    def snapshot(self) -> Dict[str, EventPopularity]:
        """Consistent copy of every tracked event's popularity"""
        pass

    def top(self, limit: int = 10) -> List[EventPopularity]:
        """Most popular tracked events, ties broken by ID"""
        ranked = sorted(self.snapshot().values(), key=lambda p: (-p.popularity_score, p.event_id))
        return ranked[:limit]

    @abstractmethod
    def reset(self) -> None:
        pass


class InMemoryPopularityStore(PopularityStore):
    """Process-local counters; every increment holds the lock"""

    def __init__(self, scoring: Type[ScoringConfig] = ScoringConfig):
        self.scoring = scoring
        self._lock = threading.Lock()
        self._views: Dict[str, int] = defaultdict(int)
        self._adds: Dict[str, int] = defaultdict(int)

    def track_view(self, event_id: str) -> None:
        with self._lock:
            self._views[event_id] += 1

    def track_scheduled(self, event_id: str) -> None:
        with self._lock:
            self._adds[event_id] += 1

    def _build(self, event_id: str, views: int, adds: int) -> EventPopularity:
        return EventPopularity(
            event_id=event_id,
            view_count=views,
            add_to_schedule_count=adds,
            popularity_score=popularity_score(views, adds, self.scoring),
            trend=popularity_trend(views, adds, self.scoring),
        )

    def get_popularity(self, event_id: str) -> EventPopularity:
        with self._lock:
            views = self._views.get(event_id, 0)
            adds = self._adds.get(event_id, 0)
        return self._build(event_id, views, adds)

    def snapshot(self) -> Dict[str, EventPopularity]:
        with self._lock:
            views = dict(self._views)
            adds = dict(self._adds)
        return {
            event_id: self._build(event_id, views.get(event_id, 0), adds.get(event_id, 0))
            for event_id in set(views) | set(adds)
        }

    def reset(self) -> None:
        with self._lock:
            self._views.clear()
            self._adds.clear()
        logger.info("Popularity counters reset")


class PopularitySnapshot:
    """
    Frozen view of the store used for one recommendation run, so every
    candidate is scored against the same numbers.
    """

    def __init__(self, entries: Dict[str, EventPopularity], catalog_ids: Optional[Iterable[str]] = None,
                 percentile: float = ScoringConfig.HIGH_DEMAND_PERCENTILE):
        self.entries = entries
        ids = list(catalog_ids) if catalog_ids is not None else list(entries)
        self.threshold = high_demand_threshold((self.score(i) for i in ids), percentile)

    def get(self, event_id: str) -> EventPopularity:
        return self.entries.get(event_id) or EventPopularity(event_id=event_id)

    def score(self, event_id: str) -> int:
        entry = self.entries.get(event_id)
        return entry.popularity_score if entry else 0

    def is_high_demand(self, event_id: str) -> bool:
        score = self.score(event_id)
        return score > 0 and score > self.threshold
