"""
Recommendation endpoints
Personalized suggestions, batch add, schedule analysis and popularity tracking
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from ...core.engine import get_engine
from ...core.schedule_state import AddEvent, LoadSchedule, ScheduleState, encode_share_token, schedule_reducer
from ...schemas import BatchAddRequest, RecommendationResult, ScheduleOptimizationResult
from ..helpers import resolve_schedule
from ..models import (
    AnalyzeScheduleRequest,
    BatchRequest,
    BatchResponse,
    RecommendationListResponse,
    RecommendationRequest,
    TimeSlotRequest,
    TrackRequest,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecommendationResult)
def get_recommendations(request: RecommendationRequest):
    """
    Rank catalog events for a visitor.

    Scores combine study program match, preferred formats, free time,
    popularity, variety, walking distance and conflicts with the schedule.
    """
    return get_engine().recommend(request.context, request.filters)


@router.post("/batch", response_model=BatchResponse)
def batch_add(request: BatchRequest):
    """Add several events at once; returns per-event outcomes and the new schedule's share token"""
    engine = get_engine()
    current = resolve_schedule(engine, request.schedule)

    result = engine.batch_add(
        BatchAddRequest(
            event_ids=request.event_ids,
            skip_conflicts=request.skip_conflicts,
            priority_override=request.priority_override,
        ),
        current,
    )

    state = schedule_reducer(ScheduleState(), LoadSchedule(items=current))
    for item in result.added_items:
        state = schedule_reducer(state, AddEvent(item=item))

    return BatchResponse(result=result, share_token=encode_share_token(state.event_ids))


@router.post("/analyze", response_model=ScheduleOptimizationResult)
def analyze_schedule(request: AnalyzeScheduleRequest):
    """Score the schedule and suggest improvements"""
    engine = get_engine()
    items = resolve_schedule(engine, request.schedule, request.event_ids)
    return engine.analyze_schedule(items, request.context)


@router.get("/popular", response_model=RecommendationListResponse)
def popular_events(limit: int = Query(default=10, ge=1, le=100)):
    """Most viewed and scheduled events"""
    recommendations = get_engine().get_popular_events(limit)
    return RecommendationListResponse(recommendations=recommendations, count=len(recommendations))


@router.post("/time-slots", response_model=RecommendationListResponse)
def events_for_time_slots(request: TimeSlotRequest):
    """Events that fit completely into the visitor's free time"""
    recommendations = get_engine().get_events_for_time_slots(
        request.time_slots, request.exclude_event_ids, request.limit
    )
    return RecommendationListResponse(recommendations=recommendations, count=len(recommendations))


@router.post("/track/{event_id}", response_model=TrackResponse)
def track_event(event_id: str, request: Optional[TrackRequest] = None):
    """Count a view of, or a schedule add for, an event (default: view)"""
    engine = get_engine()
    action = request.action if request else 'view'
    if action == 'schedule':
        popularity = engine.track_scheduled(event_id)
    else:
        popularity = engine.track_view(event_id)

    logger.debug(f"Tracked {action} for {event_id}")
    return TrackResponse(success=True, popularity=popularity)
