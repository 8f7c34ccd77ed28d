"""
Open Day Engine
Facade over the catalog, popularity store and scoring components.
The HTTP layer talks to this class only.
"""

import logging
from typing import Dict, List, Optional, Sequence, Type

from config.scoring_config import ScoringConfig
from ..exceptions import ValidationError
from ..metrics import get_metrics
from ..schemas import (
    AlternativeSuggestion,
    BatchAddRequest,
    BatchAddResult,
    Coordinates,
    Event,
    EventPopularity,
    EventRecommendation,
    RecommendationContext,
    RecommendationFilters,
    RecommendationResult,
    Route,
    ScheduleItem,
    ScheduleOptimizationResult,
    TimeConflict,
    TimeSlot,
    TravelAnalysisResult,
    TravelTimeAnalysis,
    TravelTimeSettings,
    Waypoint,
)
from ..tools.catalog import EventCatalog
from .batch import batch_add
from .conflicts import detect_conflicts
from .optimizer import ScheduleOptimizer
from .popularity import InMemoryPopularityStore, PopularitySnapshot, PopularityStore
from .recommender import RecommendationScorer, popular_recommendations, time_slot_recommendations
from .routing import build_route, calculate_route, find_alternatives
from .travel import analyze_schedule_travel, analyze_travel

logger = logging.getLogger(__name__)


class OpenDayEngine:
    """
    Schedule conflict, travel feasibility and recommendation engine.

    All state lives in the injected catalog and popularity store; every
    other operation is a pure computation over its arguments.
    """

    def __init__(
        self,
        catalog: EventCatalog,
        popularity: Optional[PopularityStore] = None,
        scoring: Type[ScoringConfig] = ScoringConfig,
        travel_settings: Optional[TravelTimeSettings] = None,
        alternatives_limit: int = 5,
        recommendation_limit: Optional[int] = None,
        default_priority: Optional[int] = None,
    ):
        self.catalog = catalog
        self.popularity = popularity or InMemoryPopularityStore(scoring)
        self.scoring = scoring
        self.travel_settings = travel_settings or TravelTimeSettings()
        self.alternatives_limit = alternatives_limit
        self.recommendation_limit = recommendation_limit or scoring.DEFAULT_LIMIT
        self.default_priority = default_priority or scoring.DEFAULT_PRIORITY
        self.optimizer = ScheduleOptimizer(scoring)

        logger.info(f"Engine ready with {len(catalog)} events")

    def _settings(self, settings: Optional[TravelTimeSettings]) -> TravelTimeSettings:
        return settings or self.travel_settings

    def _scorer(self, settings: Optional[TravelTimeSettings] = None) -> RecommendationScorer:
        return RecommendationScorer(self.scoring, self._settings(settings))

    def _snapshot(self) -> PopularitySnapshot:
        return PopularitySnapshot(
            self.popularity.snapshot(),
            catalog_ids=[e.id for e in self.catalog.all()],
            percentile=self.scoring.HIGH_DEMAND_PERCENTILE,
        )

    def _record(self, operation: str):
        get_metrics().record_engine_call(operation)

    def items_for(self, event_ids: Sequence[str]) -> List[ScheduleItem]:
        """Schedule items (with catalog times) for the known IDs"""
        return self.catalog.schedule_items(event_ids, priority=self.default_priority)

    def _events_for_items(self, items: Sequence[ScheduleItem]) -> List[Event]:
        return self.catalog.get_many(i.event_id for i in items)

    # --- conflicts & travel ---

    def detect_conflicts(self, items: Sequence[ScheduleItem]) -> List[TimeConflict]:
        self._record('detect_conflicts')
        return detect_conflicts(items)

    def analyze_travel(self, event_from_id: str, event_to_id: str,
                       settings: Optional[TravelTimeSettings] = None) -> TravelTimeAnalysis:
        """Walk between two catalog events; unknown IDs raise NotFoundError"""
        self._record('analyze_travel')
        return analyze_travel(
            self.catalog.require(event_from_id),
            self.catalog.require(event_to_id),
            self._settings(settings),
        )

    def analyze_travel_times(self, event_ids: Sequence[str],
                             settings: Optional[TravelTimeSettings] = None) -> TravelAnalysisResult:
        self._record('analyze_travel_times')
        return analyze_schedule_travel(self.catalog.get_many(event_ids), self._settings(settings))

    # --- routes ---

    def build_route(
        self,
        items: Sequence[ScheduleItem],
        settings: Optional[TravelTimeSettings] = None,
        current_location: Optional[Coordinates] = None,
    ) -> Route:
        self._record('build_route')
        events = self._events_for_items(items)
        missing = len(items) - len(events)
        if missing:
            logger.warning(f"Route request referenced {missing} unknown events")
        return build_route(events, self._settings(settings), current_location)

    def calculate_route(self, waypoints: Sequence[Waypoint],
                        settings: Optional[TravelTimeSettings] = None) -> Route:
        self._record('calculate_route')
        return calculate_route(waypoints, self._settings(settings))

    def find_alternatives(
        self,
        conflicting_event_id: str,
        items: Sequence[ScheduleItem],
        settings: Optional[TravelTimeSettings] = None,
        limit: Optional[int] = None,
    ) -> List[AlternativeSuggestion]:
        self._record('find_alternatives')
        return find_alternatives(
            self.catalog.get(conflicting_event_id),
            self._events_for_items(items),
            self.catalog.all(),
            self._settings(settings),
            limit=limit or self.alternatives_limit,
        )

    # --- recommendations ---

    def recommend(
        self,
        context: RecommendationContext,
        filters: Optional[RecommendationFilters] = None,
    ) -> RecommendationResult:
        """Ranked, grouped recommendations for the visitor's context"""
        self._record('recommend')
        filters = filters or RecommendationFilters(limit=self.recommendation_limit)

        candidates = self.catalog.search(
            exclude_ids=list(context.scheduled_event_ids) + list(context.dismissed_event_ids),
            institution=context.institution,
            start_date=filters.start_date,
            end_date=filters.end_date,
        )
        schedule = self.catalog.get_many(context.scheduled_event_ids)
        schedule_items = self.items_for(context.scheduled_event_ids)

        result = self._scorer().recommend(
            candidates, context, schedule, schedule_items, self._snapshot(), filters
        )
        get_metrics().record_recommendations(len(result.recommendations))
        return result

    def get_popular_events(self, limit: int = 10) -> List[EventRecommendation]:
        self._record('get_popular_events')
        snapshot = self._snapshot()
        ranked = [p.event_id for p in sorted(snapshot.entries.values(), key=lambda p: (-p.popularity_score, p.event_id))]
        events = self.catalog.get_many(ranked)[:limit]
        return popular_recommendations(events, snapshot)

    def get_events_for_time_slots(
        self,
        slots: Sequence[TimeSlot],
        exclude_ids: Sequence[str] = (),
        limit: int = 10,
    ) -> List[EventRecommendation]:
        self._record('get_events_for_time_slots')
        return time_slot_recommendations(self.catalog.all(), slots, exclude_ids, limit)

    # --- schedule management ---

    def batch_add(self, request: BatchAddRequest, items: Sequence[ScheduleItem] = ()) -> BatchAddResult:
        """Add events to the given schedule; added events count as scheduled for popularity"""
        self._record('batch_add')
        result = batch_add(request, items, self.catalog.get, self.default_priority)
        for event_id in result.added_event_ids:
            self.popularity.track_scheduled(event_id)
        get_metrics().record_batch_add(result.added_count)
        return result

    def analyze_schedule(
        self,
        items: Sequence[ScheduleItem],
        context: Optional[RecommendationContext] = None,
    ) -> ScheduleOptimizationResult:
        """
        Score the schedule and suggest improvements. Candidate events for
        gap filling and diversity come from the recommender, using the
        visitor context when one is given.
        """
        self._record('analyze_schedule')
        events: Dict[str, Event] = {e.id: e for e in self._events_for_items(items)}
        scheduled_ids = [i.event_id for i in items]

        if context is None:
            context = RecommendationContext(scheduled_event_ids=scheduled_ids)
        else:
            context = context.model_copy(update={'scheduled_event_ids': scheduled_ids})

        def ranked() -> List[EventRecommendation]:
            candidates = self.catalog.search(
                exclude_ids=scheduled_ids + list(context.dismissed_event_ids),
                institution=context.institution,
            )
            schedule = [events[i] for i in scheduled_ids if i in events]
            result = self._scorer().recommend(
                candidates, context, schedule, items, self._snapshot(),
                RecommendationFilters(limit=max(1, len(candidates))),
            )
            return result.recommendations

        return self.optimizer.analyze(items, events, ranked)

    # --- popularity ---

    def track_view(self, event_id: str) -> EventPopularity:
        self._check_known(event_id)
        self.popularity.track_view(event_id)
        return self.popularity.get_popularity(event_id)

    def track_scheduled(self, event_id: str) -> EventPopularity:
        self._check_known(event_id)
        self.popularity.track_scheduled(event_id)
        return self.popularity.get_popularity(event_id)

    def get_popularity(self, event_id: str) -> EventPopularity:
        return self.popularity.get_popularity(event_id)

    def _check_known(self, event_id: str):
        if not event_id:
            raise ValidationError("event_id is required", field='event_id')
        self.catalog.require(event_id)


# Global engine instance (HTTP wiring only)
_engine: Optional[OpenDayEngine] = None


def get_engine() -> OpenDayEngine:
    """Get the process-wide engine, loading the catalog on first use"""
    global _engine
    if _engine is None:
        from ..config import get_config

        config = get_config()
        catalog = EventCatalog.from_json_file(config.engine.catalog_path)
        _engine = OpenDayEngine(
            catalog,
            travel_settings=TravelTimeSettings(
                walking_speed=config.travel.walking_speed,
                buffer_minutes=config.travel.buffer_minutes,
                min_warning_minutes=config.travel.min_warning_minutes,
            ),
            alternatives_limit=config.engine.alternatives_limit,
            recommendation_limit=config.engine.recommendation_limit,
            default_priority=config.engine.default_priority,
        )
    return _engine


def set_engine(engine: Optional[OpenDayEngine]):
    """Replace the global engine (tests inject their own)"""
    global _engine
    _engine = engine
