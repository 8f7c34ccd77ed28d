"""
Pydantic models for API requests and responses
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..schemas import (
    BatchAddResult,
    Coordinates,
    EventPopularity,
    EventRecommendation,
    EventTime,
    RecommendationContext,
    RecommendationFilters,
    ScheduleItem,
    TimeConflict,
    TimeSlot,
    TravelTimeSettings,
    Waypoint,
)


class ScheduleEntry(BaseModel):
    """A scheduled event as sent by the client; times default to the catalog's"""
    event_id: str
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    priority: int = Field(default=1, ge=1)
    added_at: Optional[EventTime] = None


class ConflictRequest(BaseModel):
    """Request for conflict detection"""
    items: List[ScheduleItem] = Field(default_factory=list)


class ConflictResponse(BaseModel):
    conflicts: List[TimeConflict]
    has_conflicts: bool


class RouteRequest(BaseModel):
    """
    Either explicit waypoints (walked in the order given) or the visitor's
    scheduled events (walked in start order)
    """
    waypoints: Optional[List[Waypoint]] = None
    event_ids: List[str] = Field(default_factory=list)
    schedule: List[ScheduleEntry] = Field(default_factory=list)
    current_location: Optional[Coordinates] = None
    settings: Optional[TravelTimeSettings] = None


class TravelAnalysisRequest(BaseModel):
    event_ids: List[str] = Field(min_length=1)
    settings: Optional[TravelTimeSettings] = None


class AlternativesRequest(BaseModel):
    conflicting_event_id: str
    event_ids: List[str] = Field(default_factory=list)
    schedule: List[ScheduleEntry] = Field(default_factory=list)
    settings: Optional[TravelTimeSettings] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50)


class RecommendationRequest(BaseModel):
    """Visitor context plus optional filters"""
    context: RecommendationContext = Field(default_factory=RecommendationContext)
    filters: Optional[RecommendationFilters] = None


class BatchRequest(BaseModel):
    """Batch add against the visitor's current schedule"""
    event_ids: List[str] = Field(min_length=1)
    skip_conflicts: bool = True
    priority_override: Optional[int] = Field(default=None, ge=1)
    schedule: List[ScheduleEntry] = Field(default_factory=list)


class BatchResponse(BaseModel):
    result: BatchAddResult
    share_token: str


class AnalyzeScheduleRequest(BaseModel):
    schedule: List[ScheduleEntry] = Field(default_factory=list)
    event_ids: List[str] = Field(default_factory=list)
    context: Optional[RecommendationContext] = None


class TimeSlotRequest(BaseModel):
    time_slots: List[TimeSlot]
    exclude_event_ids: List[str] = Field(default_factory=list)
    limit: int = Field(default=10, ge=1, le=100)


class RecommendationListResponse(BaseModel):
    recommendations: List[EventRecommendation]
    count: int


class TrackRequest(BaseModel):
    """What happened to the event: viewed or added to a schedule"""
    action: str = Field(default='view', pattern='^(view|schedule)$')


class TrackResponse(BaseModel):
    success: bool
    popularity: EventPopularity
