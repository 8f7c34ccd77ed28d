"""
Route Builder
Turns an ordered set of waypoints into walking legs with feasibility warnings,
and finds substitute events for ones that do not fit a schedule.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from ..exceptions import ValidationError
from ..schemas import (
    AlternativeSuggestion,
    Coordinates,
    Event,
    Route,
    RouteLeg,
    RouteWarning,
    TravelTimeAnalysis,
    TravelTimeSettings,
    Waypoint,
)
from .geo import format_distance, format_duration, overlap_minutes
from .travel import analyze_transition, analyze_travel

logger = logging.getLogger(__name__)

CURRENT_LOCATION_ID = 'current-location'
STATUS_RANK = {'ok': 0, 'tight': 1, 'insufficient': 2}


def event_waypoint(event: Event) -> Waypoint:
    """Waypoint for an event; coordinates stay None when the location is unknown"""
    return Waypoint(
        id=event.id,
        name=event.building_name or event.title,
        coordinates=event.coordinates,
        kind='event',
        event_id=event.id,
        title=event.title,
        time_start=event.time_start,
        time_end=event.time_end,
    )


def current_location_waypoint(coordinates: Coordinates) -> Waypoint:
    return Waypoint(
        id=CURRENT_LOCATION_ID,
        name='Current location',
        coordinates=coordinates,
        kind='current_location',
    )


def _label(waypoint: Waypoint) -> str:
    return waypoint.title or waypoint.name


def _warning_for(index: int, leg: RouteLeg, settings: TravelTimeSettings) -> Optional[RouteWarning]:
    analysis = leg.analysis
    if analysis.status == 'ok':
        return None

    required = analysis.walking_time_seconds + settings.buffer_seconds
    available = analysis.time_between_events_seconds
    origin, target = _label(leg.from_waypoint), _label(leg.to_waypoint)

    if analysis.status == 'insufficient':
        message = (
            f"Not enough time to get from {origin} to {target}: "
            f"{format_duration(available or 0)} available, {format_duration(required)} needed "
            f"({format_distance(analysis.distance_meters)} walk)"
        )
        severity = 'error'
    else:
        message = (
            f"Tight connection from {origin} to {target}: "
            f"only {format_duration(analysis.time_margin_seconds or 0)} to spare"
        )
        severity = 'warning'

    return RouteWarning(
        severity=severity,
        message=message,
        leg_index=index,
        required_time_seconds=required,
        available_time_seconds=available,
        event_from_id=leg.from_waypoint.event_id,
        event_to_id=leg.to_waypoint.event_id,
    )


def calculate_route(waypoints: Sequence[Waypoint], settings: Optional[TravelTimeSettings] = None) -> Route:
    """
    Walk the waypoints in the order given.

    Raises ValidationError for fewer than two waypoints.
    """
    settings = settings or TravelTimeSettings()
    if len(waypoints) < 2:
        raise ValidationError("A route needs at least two waypoints", field='waypoints')

    legs: List[RouteLeg] = []
    warnings: List[RouteWarning] = []

    for index in range(len(waypoints) - 1):
        origin, target = waypoints[index], waypoints[index + 1]
        analysis: TravelTimeAnalysis = analyze_transition(
            origin.coordinates,
            origin.time_end,
            target.coordinates,
            target.time_start,
            settings,
            event_from_id=origin.event_id,
            event_to_id=target.event_id,
            event_from_title=origin.title,
            event_to_title=target.title,
        )
        leg = RouteLeg(
            from_waypoint=origin,
            to_waypoint=target,
            distance_meters=analysis.distance_meters,
            duration_seconds=analysis.walking_time_seconds,
            analysis=analysis,
        )
        legs.append(leg)

        warning = _warning_for(index, leg, settings)
        if warning:
            warnings.append(warning)

    route = Route(
        id=f"route-{uuid.uuid4().hex[:12]}",
        waypoints=list(waypoints),
        legs=legs,
        total_distance_meters=sum(leg.distance_meters for leg in legs),
        total_duration_seconds=sum(leg.duration_seconds for leg in legs),
        has_warnings=bool(warnings),
        warnings=warnings,
    )
    logger.debug(
        f"Route {route.id}: {len(legs)} legs, {format_distance(route.total_distance_meters)}, "
        f"{len(warnings)} warnings"
    )
    return route


def build_route(
    events: Sequence[Event],
    settings: Optional[TravelTimeSettings] = None,
    current_location: Optional[Coordinates] = None,
) -> Route:
    """
    Route through scheduled events in start order, optionally starting
    from the visitor's current position. Events without a start time go last.
    """
    ordered = sorted(events, key=lambda e: (e.time_start is None, e.time_start or 0, e.id))
    waypoints = [event_waypoint(e) for e in ordered]
    if current_location is not None:
        waypoints.insert(0, current_location_waypoint(current_location))
    return calculate_route(waypoints, settings)


def _previous_event(candidate: Event, schedule: Sequence[Event]) -> Optional[Event]:
    """Latest scheduled event ending at or before the candidate starts"""
    before = [e for e in schedule if e.time_end is not None and e.time_end <= candidate.time_start]
    if not before:
        return None
    return max(before, key=lambda e: (e.time_end, e.id))


def _overlaps_any(candidate: Event, schedule: Sequence[Event]) -> bool:
    for event in schedule:
        if not event.has_times:
            continue
        if overlap_minutes(candidate.time_start, candidate.time_end, event.time_start, event.time_end) > 0:
            return True
    return False


def find_alternatives(
    conflicting: Optional[Event],
    schedule: Sequence[Event],
    candidates: Sequence[Event],
    settings: Optional[TravelTimeSettings] = None,
    limit: int = 5,
) -> List[AlternativeSuggestion]:
    """
    Substitutes for an event that clashes with the schedule.

    A substitute shares a study program or the event type with the
    conflicting event, has known times and fits around the rest of the
    schedule. Best travel fit first.
    """
    if conflicting is None:
        return []

    settings = settings or TravelTimeSettings()
    others = [e for e in schedule if e.id != conflicting.id]
    scheduled_ids = {e.id for e in schedule} | {conflicting.id}
    programs = set(conflicting.study_program_ids)

    ranked = []
    for candidate in candidates:
        if candidate.id in scheduled_ids or not candidate.has_times:
            continue

        shares_program = bool(programs & set(candidate.study_program_ids))
        same_type = candidate.event_type == conflicting.event_type
        if not (shares_program or same_type):
            continue
        if _overlaps_any(candidate, others):
            continue

        previous = _previous_event(candidate, others)
        walking: Optional[float] = None
        status = 'ok'
        if previous is not None:
            analysis = analyze_travel(previous, candidate, settings)
            walking = analysis.walking_time_seconds
            status = analysis.status

        if shares_program:
            reason = f"Covers the same study program as {conflicting.title}"
        else:
            reason = f"Same kind of event as {conflicting.title}"

        suggestion = AlternativeSuggestion(
            event_id=candidate.id,
            title=candidate.title,
            reason=reason,
            time_start=candidate.time_start,
            time_end=candidate.time_end,
            new_travel_time_seconds=walking,
            travel_status=status,
        )
        ranked.append(((STATUS_RANK[status], walking or 0.0, candidate.time_start, candidate.id), suggestion))

    ranked.sort(key=lambda pair: pair[0])
    logger.debug(f"Found {len(ranked)} alternatives for {conflicting.id}")
    return [suggestion for _, suggestion in ranked[:limit]]
