"""
Travel-Time Analyzer
Decides whether a visitor can walk from one event to the next in time
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..schemas import (
    Coordinates,
    Event,
    TravelAnalysisResult,
    TravelStatus,
    TravelSummary,
    TravelTimeAnalysis,
    TravelTimeSettings,
)
from .geo import haversine_distance, walking_time_seconds

logger = logging.getLogger(__name__)


def classify_margin(margin_seconds: float, settings: TravelTimeSettings) -> TravelStatus:
    """insufficient below zero, tight below the warning threshold, ok otherwise"""
    if margin_seconds < 0:
        return 'insufficient'
    if margin_seconds < settings.min_warning_seconds:
        return 'tight'
    return 'ok'


def analyze_transition(
    from_coords: Optional[Coordinates],
    from_end: Optional[datetime],
    to_coords: Optional[Coordinates],
    to_start: Optional[datetime],
    settings: TravelTimeSettings,
    event_from_id: Optional[str] = None,
    event_to_id: Optional[str] = None,
    event_from_title: Optional[str] = None,
    event_to_title: Optional[str] = None,
) -> TravelTimeAnalysis:
    """
    Core analysis on raw positions and times. Used directly by the route
    builder, whose waypoints are not always events.

    Degraded inputs never raise:
    - unknown position on either side -> distance 0, location_missing=True
    - unknown end/start time -> no margin, status ok
    """
    location_missing = from_coords is None or to_coords is None
    distance = 0.0 if location_missing else haversine_distance(from_coords, to_coords)
    walking = walking_time_seconds(distance, settings.speed_mps)

    time_between: Optional[float] = None
    margin: Optional[float] = None
    status: TravelStatus = 'ok'

    if from_end is not None and to_start is not None:
        # overlapping events are the conflict detector's business
        time_between = max(0.0, (to_start - from_end).total_seconds())
        if not (location_missing and settings.assume_ok_without_location):
            margin = time_between - walking - settings.buffer_seconds
            status = classify_margin(margin, settings)

    return TravelTimeAnalysis(
        event_from_id=event_from_id,
        event_to_id=event_to_id,
        event_from_title=event_from_title,
        event_to_title=event_to_title,
        distance_meters=distance,
        walking_time_seconds=walking,
        time_between_events_seconds=time_between,
        time_margin_seconds=margin,
        has_sufficient_time=status == 'ok',
        location_missing=location_missing,
        status=status,
    )


def analyze_travel(event_from: Event, event_to: Event, settings: Optional[TravelTimeSettings] = None) -> TravelTimeAnalysis:
    """Analyze the walk from the end of one event to the start of the next"""
    settings = settings or TravelTimeSettings()
    return analyze_transition(
        event_from.coordinates,
        event_from.time_end,
        event_to.coordinates,
        event_to.time_start,
        settings,
        event_from_id=event_from.id,
        event_to_id=event_to.id,
        event_from_title=event_from.title,
        event_to_title=event_to.title,
    )


def summarize(analyses: Sequence[TravelTimeAnalysis]) -> TravelSummary:
    return TravelSummary(
        total_transitions=len(analyses),
        ok_count=sum(1 for a in analyses if a.status == 'ok'),
        tight_count=sum(1 for a in analyses if a.status == 'tight'),
        insufficient_count=sum(1 for a in analyses if a.status == 'insufficient'),
        has_issues=any(a.status != 'ok' for a in analyses),
        total_walking_time_seconds=sum(a.walking_time_seconds for a in analyses),
        total_distance_meters=sum(a.distance_meters for a in analyses),
    )


def analyze_schedule_travel(events: Sequence[Event], settings: Optional[TravelTimeSettings] = None) -> TravelAnalysisResult:
    """
    Analyze every consecutive transition of a schedule.

    Events without a start time cannot be placed in the day and are left out.
    """
    settings = settings or TravelTimeSettings()
    timed = sorted((e for e in events if e.time_start is not None), key=lambda e: (e.time_start, e.id))

    analyses: List[TravelTimeAnalysis] = [
        analyze_travel(timed[i], timed[i + 1], settings) for i in range(len(timed) - 1)
    ]
    summary = summarize(analyses)
    if summary.has_issues:
        logger.info(
            f"Travel analysis: {summary.tight_count} tight, "
            f"{summary.insufficient_count} insufficient of {summary.total_transitions} transitions"
        )
    return TravelAnalysisResult(analyses=analyses, summary=summary)
