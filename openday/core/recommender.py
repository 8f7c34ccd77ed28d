"""
Recommendation Scorer
Scores catalog events against a visitor's interests and current schedule,
ranks them and groups the result for display.
"""

import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Type

from config.scoring_config import ScoringConfig
from ..schemas import (
    Event,
    EventRecommendation,
    RecommendationContext,
    RecommendationContextSummary,
    RecommendationFilters,
    RecommendationGroup,
    RecommendationReason,
    RecommendationResult,
    ScheduleItem,
    TimeSlot,
    TravelTimeSettings,
)
from .conflicts import conflicting_ids
from .geo import fits_within
from .popularity import PopularitySnapshot
from .travel import analyze_travel

logger = logging.getLogger(__name__)


def _ranking_key(rec: EventRecommendation) -> Tuple:
    start = rec.event.time_start
    return (-rec.score, start is None, start.timestamp() if start else 0.0, rec.event.id)


def _adjacent_events(event: Event, schedule: Sequence[Event]) -> Tuple[Optional[Event], Optional[Event]]:
    """Closest located scheduled events before and after the candidate"""
    located = [e for e in schedule if e.coordinates is not None]
    before = [e for e in located if e.time_end is not None and e.time_end <= event.time_start]
    after = [e for e in located if e.time_start is not None and e.time_start >= event.time_end]

    previous = max(before, key=lambda e: (e.time_end, e.id)) if before else None
    following = min(after, key=lambda e: (e.time_start, e.id)) if after else None
    return previous, following


class RecommendationScorer:
    """
    Weighted multi-criteria scorer.

    Each satisfied criterion contributes up to its configured weight; the sum
    is normalized by the total weight so scores stay within 0..100 even when
    the weights are tuned to a different total.
    """

    def __init__(self, scoring: Type[ScoringConfig] = ScoringConfig, settings: Optional[TravelTimeSettings] = None):
        self.scoring = scoring
        self.settings = settings or TravelTimeSettings()
        scoring.validate()

    def _diversity_gain(self, event: Event, schedule: Sequence[Event]) -> bool:
        if not schedule:
            return False

        type_counts = Counter(e.event_type for e in schedule)
        mean_type = len(schedule) / len(type_counts)
        if type_counts.get(event.event_type, 0) < mean_type:
            return True

        program_counts = Counter(pid for e in schedule for pid in e.study_program_ids)
        if program_counts and event.study_program_ids:
            mean_program = sum(program_counts.values()) / len(program_counts)
            if any(program_counts.get(pid, 0) < mean_program for pid in event.study_program_ids):
                return True
        return False

    def _walking_to_neighbours(self, event: Event, schedule: Sequence[Event]) -> Tuple[Optional[float], Optional[float]]:
        """(shortest walk in seconds to an adjacent event, walk in seconds from the previous one)"""
        if event.coordinates is None or not event.has_times:
            return None, None

        previous, following = _adjacent_events(event, schedule)
        walks = []
        from_previous = None
        if previous is not None:
            from_previous = analyze_travel(previous, event, self.settings).walking_time_seconds
            walks.append(from_previous)
        if following is not None:
            walks.append(analyze_travel(event, following, self.settings).walking_time_seconds)
        return (min(walks) if walks else None), from_previous

    def score_event(
        self,
        event: Event,
        context: RecommendationContext,
        schedule: Sequence[Event],
        schedule_items: Sequence[ScheduleItem],
        popularity: PopularitySnapshot,
    ) -> EventRecommendation:
        """Score one candidate; reasons list only criteria that contributed"""
        weights = self.scoring.recommendation_weights()
        total_weight = self.scoring.total_weight()
        contributions: List[Tuple[str, float, str]] = []

        shared = [sp for sp in event.study_programs if sp.id in set(context.study_program_ids)]
        if shared:
            names = ', '.join(sp.label for sp in shared)
            contributions.append(('study_program', weights['study_program'], f"Matches your study program: {names}"))

        if event.event_type in context.preferred_event_types:
            contributions.append(('event_type', weights['event_type'], f"One of your preferred formats ({event.event_type.value})"))

        if any(fits_within(event.time_start, event.time_end, slot) for slot in context.available_time_slots):
            contributions.append(('time_fit', weights['time_fit'], "Fits into your available time"))

        pop_score = popularity.score(event.id)
        if pop_score > 0:
            contributions.append(('popularity', weights['popularity'] * pop_score / 100,
                                  f"Popular with other visitors ({pop_score}/100)"))

        if self._diversity_gain(event, schedule):
            contributions.append(('diversity', weights['diversity'], "Adds variety to your schedule"))

        nearest_walk, from_previous = self._walking_to_neighbours(event, schedule)
        if nearest_walk is not None:
            max_travel = context.max_travel_minutes * 60
            factor = max(0.0, 1 - nearest_walk / max_travel)
            if factor > 0:
                contributions.append(('location', weights['location'] * factor,
                                      f"Short walk from your other events ({round(nearest_walk / 60)} min)"))

        clashes = conflicting_ids(event.time_start, event.time_end, schedule_items, exclude_event_id=event.id)
        if not clashes:
            contributions.append(('no_conflict', weights['no_conflict'], "No conflict with your schedule"))

        raw = sum(points for _, points, _ in contributions)
        score = raw / total_weight * 100
        if event.id in set(context.viewed_event_ids):
            score -= self.scoring.VIEWED_PENALTY
        score = round(min(100.0, max(0.0, score)), 2)

        reasons = [
            RecommendationReason(type=kind, description=text, weight=min(1.0, points / total_weight))
            for kind, points, text in contributions
            if points > 0
        ]

        return EventRecommendation(
            event=event,
            score=score,
            reasons=reasons,
            conflicts_with_schedule=bool(clashes),
            conflicting_event_ids=clashes,
            travel_time_from_previous=round(from_previous / 60, 2) if from_previous is not None else None,
            is_high_demand=popularity.is_high_demand(event.id),
        )

    def recommend(
        self,
        candidates: Sequence[Event],
        context: RecommendationContext,
        schedule: Sequence[Event],
        schedule_items: Sequence[ScheduleItem],
        popularity: PopularitySnapshot,
        filters: Optional[RecommendationFilters] = None,
    ) -> RecommendationResult:
        """
        Score, filter, rank and group the candidates.

        Candidates are expected to be pre-filtered for scheduled, dismissed,
        institution and date constraints (see EventCatalog.search).
        total_available counts matches before truncation to the limit.
        """
        filters = filters or RecommendationFilters(limit=self.scoring.DEFAULT_LIMIT)

        scored = []
        for event in candidates:
            rec = self.score_event(event, context, schedule, schedule_items, popularity)
            if filters.exclude_conflicts and rec.conflicts_with_schedule:
                continue
            if filters.event_types and event.event_type not in filters.event_types:
                continue
            if rec.score < filters.min_score:
                continue
            if filters.only_high_demand and not rec.is_high_demand:
                continue
            scored.append(rec)

        scored.sort(key=_ranking_key)
        top = scored[:filters.limit]

        logger.info(f"Recommendations: {len(scored)} matches from {len(candidates)} candidates, returning {len(top)}")

        return RecommendationResult(
            recommendations=top,
            groups=group_recommendations(top, self.scoring.GROUP_MIN_SIZE),
            total_available=len(scored),
            generated_at=datetime.now(),
            context=RecommendationContextSummary(
                study_program_count=len(context.study_program_ids),
                available_slot_count=len(context.available_time_slots),
                scheduled_event_count=len(context.scheduled_event_ids),
            ),
        )


def _time_bucket(start: datetime) -> str:
    return f"{start.hour:02d}:00-{(start.hour + 1) % 24:02d}:00"


def group_recommendations(recommendations: Sequence[EventRecommendation], min_size: int = 2) -> List[RecommendationGroup]:
    """
    Group by study program, event type, hour of day and building.
    Only groups with at least min_size members are kept, best average first.
    """
    buckets: Dict[Tuple[str, str], List[EventRecommendation]] = defaultdict(list)

    for rec in recommendations:
        event = rec.event
        for sp in event.study_programs:
            buckets[('study_program', sp.label)].append(rec)
        buckets[('event_type', event.event_type.value)].append(rec)
        if event.time_start is not None:
            buckets[('time_slot', _time_bucket(event.time_start))].append(rec)
        if event.building_name:
            buckets[('location', event.building_name)].append(rec)

    groups = []
    for (category_type, category), members in buckets.items():
        if len(members) < min_size:
            continue
        groups.append(RecommendationGroup(
            category=category,
            category_type=category_type,
            recommendations=members,
            average_score=round(sum(r.score for r in members) / len(members), 2),
        ))

    groups.sort(key=lambda g: (-g.average_score, g.category_type, g.category))
    return groups


def time_slot_recommendations(
    events: Sequence[Event],
    slots: Sequence[TimeSlot],
    exclude_ids: Sequence[str] = (),
    limit: int = 10,
) -> List[EventRecommendation]:
    """Events that fit entirely into one of the visitor's free slots, earliest first"""
    if not slots:
        return []

    excluded = set(exclude_ids)
    fitting = [
        e for e in events
        if e.id not in excluded and any(fits_within(e.time_start, e.time_end, s) for s in slots)
    ]
    fitting.sort(key=lambda e: (e.time_start, e.id))

    return [
        EventRecommendation(
            event=e,
            score=75,
            reasons=[RecommendationReason(type='time_fit', description="Fits into your available time", weight=0.75)],
        )
        for e in fitting[:limit]
    ]


def popular_recommendations(events: Sequence[Event], popularity: PopularitySnapshot) -> List[EventRecommendation]:
    """Wrap already-ranked popular events as recommendations scored by popularity"""
    results = []
    for event in events:
        entry = popularity.get(event.id)
        results.append(EventRecommendation(
            event=event,
            score=entry.popularity_score,
            reasons=[RecommendationReason(
                type='popularity',
                description=f"Added to {entry.add_to_schedule_count} schedules",
                weight=1.0,
            )],
            is_high_demand=popularity.is_high_demand(event.id),
        ))
    return results
