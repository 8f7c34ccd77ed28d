"""
Schedule Optimizer
Rates a visitor's schedule and proposes greedy improvements
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Type

from config.scoring_config import ScoringConfig
from ..schemas import (
    ConflictSummary,
    DiversityBreakdown,
    Event,
    EventRecommendation,
    ScheduleItem,
    ScheduleOptimization,
    ScheduleOptimizationResult,
    SuggestedAction,
    TimeConflict,
    TimeSlot,
)
from .conflicts import detect_conflicts
from .geo import distance_matrix, format_distance
from .routing import event_waypoint

logger = logging.getLogger(__name__)

# Returns ranked recommendations for the current schedule; supplied by the engine
RecommendationSource = Callable[[], List[EventRecommendation]]


def nearest_neighbour_order(matrix) -> List[int]:
    """Greedy tour over a distance matrix starting at index 0"""
    n = len(matrix)
    if n == 0:
        return []

    order = [0]
    remaining = set(range(1, n))
    while remaining:
        last = order[-1]
        nearest = min(remaining, key=lambda j: (matrix[last][j], j))
        order.append(nearest)
        remaining.remove(nearest)
    return order


def _tour_length(matrix, order: Sequence[int]) -> float:
    return float(sum(matrix[order[i]][order[i + 1]] for i in range(len(order) - 1)))


class ScheduleOptimizer:
    """Scores a schedule and lists suggested changes, best first"""

    def __init__(self, scoring: Type[ScoringConfig] = ScoringConfig):
        self.scoring = scoring

    # --- gaps ---

    def find_gaps(self, items: Sequence[ScheduleItem]) -> List[TimeSlot]:
        """Free time within operating hours on every day that has a timed item"""
        timed = [i for i in items if i.start is not None and i.end is not None]
        days = sorted({i.start.date() for i in timed})
        gaps: List[TimeSlot] = []

        for day in days:
            tz = next(i.start.tzinfo for i in timed if i.start.date() == day)
            day_start = datetime.combine(day, datetime.min.time(), tzinfo=tz) + timedelta(hours=self.scoring.DAY_START_HOUR)
            day_end = datetime.combine(day, datetime.min.time(), tzinfo=tz) + timedelta(hours=self.scoring.DAY_END_HOUR)

            busy = sorted(
                (max(i.start, day_start), min(i.end, day_end))
                for i in timed
                if i.start < day_end and i.end > day_start
            )

            cursor = day_start
            for start, end in busy:
                if start > cursor:
                    gaps.append(TimeSlot(start=cursor, end=start))
                cursor = max(cursor, end)
            if cursor < day_end:
                gaps.append(TimeSlot(start=cursor, end=day_end))

        return gaps

    def _interior_gap_count(self, items: Sequence[ScheduleItem]) -> int:
        """Idle stretches between two scheduled items longer than the threshold"""
        timed = sorted((i for i in items if i.start and i.end), key=lambda i: i.start)
        threshold = timedelta(minutes=self.scoring.IDLE_GAP_THRESHOLD_MINUTES)
        count = 0
        latest_end = None
        for item in timed:
            if latest_end is not None and item.start - latest_end > threshold:
                count += 1
            latest_end = item.end if latest_end is None else max(latest_end, item.end)
        return count

    # --- scoring ---

    def _variety(self, known: Sequence[Event]) -> float:
        """
        Share of distinct event types and study programs, 1.0 when nothing
        repeats. Programs only count over events that name any.
        """
        ratios = [len({e.event_type for e in known}) / len(known)]

        with_programs = [e for e in known if e.study_program_ids]
        if with_programs:
            distinct_programs = len({pid for e in with_programs for pid in e.study_program_ids})
            ratios.append(min(1.0, distinct_programs / len(with_programs)))

        return sum(ratios) / len(ratios)

    def score(self, items: Sequence[ScheduleItem], events: Dict[str, Event], conflicts: Sequence[TimeConflict]) -> float:
        """
        Start from the base score and subtract penalties for conflicts, long
        idle stretches and low variety. An empty schedule scores 0: there is
        nothing to rate.
        """
        if not items:
            return 0.0

        score = float(self.scoring.SCHEDULE_BASE_SCORE)
        score -= self.scoring.CONFLICT_PENALTY * len(conflicts)
        score -= self.scoring.IDLE_GAP_PENALTY * self._interior_gap_count(items)

        known = [events[i.event_id] for i in items if i.event_id in events]
        if len(known) >= self.scoring.DIVERSITY_MIN_ITEMS:
            score -= self.scoring.DIVERSITY_PENALTY_MAX * (1 - self._variety(known))

        return round(min(100.0, max(0.0, score)), 2)

    def diversity(self, items: Sequence[ScheduleItem], events: Dict[str, Event]) -> DiversityBreakdown:
        known = [events[i.event_id] for i in items if i.event_id in events]
        return DiversityBreakdown(
            event_type_distribution=dict(Counter(e.event_type.value for e in known)),
            study_program_distribution=dict(Counter(sp.label for e in known for sp in e.study_programs)),
            location_distribution=dict(Counter(e.building_name for e in known if e.building_name)),
        )

    # --- suggestions ---

    def _resolve_conflicts(self, conflicts: Sequence[TimeConflict], titles: Dict[str, str]) -> List[ScheduleOptimization]:
        suggestions = []
        for conflict in conflicts:
            a, b = conflict.item1, conflict.item2
            if a.priority != b.priority:
                drop, keep = (a, b) if a.priority < b.priority else (b, a)
                why = "has the lower priority"
            else:
                # equal priority: the one added later goes
                drop, keep = (a, b) if a.added_at > b.added_at else (b, a)
                why = "was added later"

            suggestions.append(ScheduleOptimization(
                type='resolve_conflict',
                description=(
                    f"{titles.get(drop.event_id, drop.event_id)} overlaps "
                    f"{titles.get(keep.event_id, keep.event_id)} by {conflict.overlap_minutes} min"
                ),
                suggested_action=SuggestedAction(
                    action='remove',
                    event_ids=[drop.event_id],
                    reason=f"{titles.get(drop.event_id, drop.event_id)} {why}",
                ),
                benefit_score=min(100.0, self.scoring.RESOLVE_CONFLICT_BENEFIT + conflict.overlap_minutes),
            ))
        return suggestions

    def _fill_gaps(self, gaps: Sequence[TimeSlot], recommendations: List[EventRecommendation]) -> List[ScheduleOptimization]:
        suggestions = []
        used = set()
        for gap in gaps:
            if gap.duration_minutes < self.scoring.FILL_GAP_MIN_MINUTES:
                continue

            pick = next(
                (r for r in recommendations
                 if r.event.id not in used
                 and r.event.has_times
                 and r.event.time_start >= gap.start and r.event.time_end <= gap.end),
                None,
            )
            if pick is None:
                continue

            used.add(pick.event.id)
            suggestions.append(ScheduleOptimization(
                type='fill_gap',
                description=f"{gap.duration_minutes} min free from {gap.start:%H:%M} to {gap.end:%H:%M}",
                suggested_action=SuggestedAction(
                    action='add',
                    event_ids=[pick.event.id],
                    reason=f"{pick.event.title} fits into the free time",
                ),
                benefit_score=min(100.0, self.scoring.FILL_GAP_BENEFIT + pick.score * 0.25),
            ))
        return suggestions

    def _reduce_travel(self, items: Sequence[ScheduleItem], events: Dict[str, Event]) -> Optional[ScheduleOptimization]:
        located = [events[i.event_id] for i in items if i.event_id in events and events[i.event_id].coordinates]
        located.sort(key=lambda e: (e.time_start is None, e.time_start.timestamp() if e.time_start else 0.0, e.id))
        if len(located) < 3:
            return None

        waypoints = [event_waypoint(e) for e in located]
        matrix = distance_matrix([w.coordinates for w in waypoints])
        current = list(range(len(waypoints)))
        greedy = nearest_neighbour_order(matrix)

        current_length = _tour_length(matrix, current)
        greedy_length = _tour_length(matrix, greedy)
        if current_length <= 0:
            return None

        improvement = (current_length - greedy_length) / current_length
        if improvement <= self.scoring.REDUCE_TRAVEL_MIN_IMPROVEMENT:
            return None

        saved = current_length - greedy_length
        return ScheduleOptimization(
            type='reduce_travel',
            description=f"Visiting buildings in a different order saves about {format_distance(saved)} of walking",
            suggested_action=SuggestedAction(
                action='swap',
                event_ids=[waypoints[i].event_id for i in greedy],
                reason=f"Shorter walk: {format_distance(greedy_length)} instead of {format_distance(current_length)}",
            ),
            benefit_score=min(100.0, round(improvement * 100, 2)),
        )

    def _add_diversity(self, items: Sequence[ScheduleItem], events: Dict[str, Event],
                       recommendations: List[EventRecommendation]) -> Optional[ScheduleOptimization]:
        if len(items) < self.scoring.DIVERSITY_MIN_ITEMS:
            return None

        present = {events[i.event_id].event_type for i in items if i.event_id in events}
        pick = next(
            (r for r in recommendations
             if not r.conflicts_with_schedule and r.event.event_type not in present),
            None,
        )
        if pick is None:
            return None

        return ScheduleOptimization(
            type='add_diversity',
            description=f"Your schedule has no {pick.event.event_type.value} yet",
            suggested_action=SuggestedAction(
                action='add',
                event_ids=[pick.event.id],
                reason=f"{pick.event.title} adds a different kind of event",
            ),
            benefit_score=min(100.0, self.scoring.ADD_DIVERSITY_BENEFIT + pick.score * 0.2),
        )

    def analyze(
        self,
        items: Sequence[ScheduleItem],
        events: Dict[str, Event],
        recommendations: Optional[RecommendationSource] = None,
    ) -> ScheduleOptimizationResult:
        """
        Full analysis of a schedule.

        events maps event IDs to catalog events (for titles, types and
        positions). recommendations is only called when a suggestion needs
        candidates. An empty schedule gets score 0 and empty collections.
        """
        if not items:
            return ScheduleOptimizationResult(current_score=0)

        conflicts = detect_conflicts(items)
        gaps = self.find_gaps(items)
        titles = {event_id: e.title for event_id, e in events.items()}

        optimizations = self._resolve_conflicts(conflicts, titles)

        ranked: List[EventRecommendation] = []
        wants_candidates = (
            any(g.duration_minutes >= self.scoring.FILL_GAP_MIN_MINUTES for g in gaps)
            or len(items) >= self.scoring.DIVERSITY_MIN_ITEMS
        )
        if recommendations is not None and wants_candidates:
            ranked = recommendations()

        optimizations.extend(self._fill_gaps(gaps, ranked))

        travel = self._reduce_travel(items, events)
        if travel:
            optimizations.append(travel)

        diversity = self._add_diversity(items, events, ranked)
        if diversity:
            optimizations.append(diversity)

        optimizations.sort(key=lambda o: -o.benefit_score)

        result = ScheduleOptimizationResult(
            current_score=self.score(items, events, conflicts),
            optimizations=optimizations,
            gaps=gaps,
            conflicts=[
                ConflictSummary(
                    event1_id=c.item1.event_id,
                    event1_title=titles.get(c.item1.event_id, c.item1.event_id),
                    event2_id=c.item2.event_id,
                    event2_title=titles.get(c.item2.event_id, c.item2.event_id),
                    overlap_minutes=c.overlap_minutes,
                )
                for c in conflicts
            ],
            diversity=self.diversity(items, events),
        )
        logger.info(
            f"Schedule analysis: score={result.current_score}, {len(conflicts)} conflicts, "
            f"{len(gaps)} gaps, {len(optimizations)} suggestions"
        )
        return result
