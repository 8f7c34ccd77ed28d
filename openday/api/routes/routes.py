"""
Route endpoints
Walking routes between scheduled events, travel checks and alternatives
"""

import logging
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from ...core.engine import get_engine
from ...schemas import AlternativeSuggestion, BuildingInfo, Route, TravelAnalysisResult
from ..helpers import resolve_schedule
from ..models import AlternativesRequest, RouteRequest, TravelAnalysisRequest

logger = logging.getLogger(__name__)

router = APIRouter()


class AlternativesResponse(BaseModel):
    conflicting_event_id: str
    alternatives: List[AlternativeSuggestion]


class BuildingsResponse(BaseModel):
    buildings: List[BuildingInfo]
    count: int


@router.post("", response_model=Route)
def calculate_route(request: RouteRequest):
    """
    Calculate a walking route.

    Send either explicit waypoints, or scheduled events (event_ids and/or
    schedule) with an optional current location.
    """
    engine = get_engine()
    if request.waypoints:
        return engine.calculate_route(request.waypoints, request.settings)

    items = resolve_schedule(engine, request.schedule, request.event_ids)
    return engine.build_route(items, request.settings, request.current_location)


@router.post("/analyze", response_model=TravelAnalysisResult)
def analyze_travel_times(request: TravelAnalysisRequest):
    """Check every consecutive walk between the given events"""
    return get_engine().analyze_travel_times(request.event_ids, request.settings)


@router.post("/alternatives", response_model=AlternativesResponse)
def find_alternatives(request: AlternativesRequest):
    """Suggest substitutes for an event that does not fit the schedule"""
    engine = get_engine()
    items = resolve_schedule(engine, request.schedule, request.event_ids)
    alternatives = engine.find_alternatives(request.conflicting_event_id, items, request.settings, request.limit)
    return AlternativesResponse(conflicting_event_id=request.conflicting_event_id, alternatives=alternatives)


@router.get("/buildings", response_model=BuildingsResponse)
def list_buildings():
    """Campus buildings with the number of events each hosts"""
    buildings = get_engine().catalog.buildings_with_counts()
    return BuildingsResponse(buildings=buildings, count=len(buildings))
