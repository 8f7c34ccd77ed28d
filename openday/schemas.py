"""
Pydantic models shared by the engine and the HTTP layer.
Everything here serializes to plain JSON via model_dump(mode="json").

All event times are naive wall-clock times of the event's time zone (the
catalog stores them that way). Aware datetimes coming in from clients are
converted on validation so naive and aware values never meet.
"""

from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field, model_validator
from zoneinfo import ZoneInfo

from .config import get_config


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def to_event_time(value: datetime) -> datetime:
    """Aware datetimes become naive local time in the configured event time zone"""
    if value.tzinfo is None:
        return value
    zone = _zone(get_config().engine.event_timezone)
    return value.astimezone(zone).replace(tzinfo=None)


EventTime = Annotated[datetime, AfterValidator(to_event_time)]


WALKING_SPEEDS: Dict[str, float] = {
    'slow': 0.8,    # ~2.9 km/h, crowded or mobility impaired
    'normal': 1.2,  # ~4.3 km/h
    'fast': 1.5,    # ~5.4 km/h
}

WalkingSpeed = Literal['slow', 'normal', 'fast']
TravelStatus = Literal['ok', 'tight', 'insufficient']
ReasonType = Literal['study_program', 'event_type', 'time_fit', 'popularity', 'diversity', 'location', 'no_conflict']
GroupType = Literal['study_program', 'event_type', 'time_slot', 'location']


class EventType(str, Enum):
    """Event formats offered on the open day"""
    VORTRAG = "VORTRAG"
    LABORFUEHRUNG = "LABORFUEHRUNG"
    RUNDGANG = "RUNDGANG"
    WORKSHOP = "WORKSHOP"
    LINK = "LINK"
    INFOSTAND = "INFOSTAND"


class Institution(str, Enum):
    """Organizing institution"""
    UNI = "UNI"
    HOCHSCHULE = "HOCHSCHULE"
    BOTH = "BOTH"


class TimeSlot(BaseModel):
    """A half-open time window [start, end)"""
    start: EventTime
    end: EventTime

    @model_validator(mode="after")
    def check_order(self):
        if self.end <= self.start:
            raise ValueError("TimeSlot end must be after start")
        return self

    @computed_field
    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


class Coordinates(BaseModel):
    """WGS84 position in degrees"""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class EventLocation(BaseModel):
    """Where an event takes place"""
    building_name: Optional[str] = None
    room_number: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class StudyProgramRef(BaseModel):
    id: str
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.id


class Event(BaseModel):
    """Catalog record for a single event"""
    id: str
    title: str
    event_type: EventType
    institution: Institution = Institution.BOTH
    description: Optional[str] = None
    time_start: Optional[EventTime] = None
    time_end: Optional[EventTime] = None
    study_programs: List[StudyProgramRef] = Field(default_factory=list)
    location: Optional[EventLocation] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.time_start and self.time_end and self.time_end <= self.time_start:
            raise ValueError(f"Event {self.id}: time_end must be after time_start")
        return self

    @property
    def study_program_ids(self) -> List[str]:
        return [sp.id for sp in self.study_programs]

    @property
    def coordinates(self) -> Optional[Coordinates]:
        return self.location.coordinates if self.location else None

    @property
    def building_name(self) -> Optional[str]:
        return self.location.building_name if self.location else None

    @property
    def has_times(self) -> bool:
        return self.time_start is not None and self.time_end is not None


class BuildingInfo(BaseModel):
    """Campus building used as a coordinate fallback and for map display"""
    id: str
    name: str
    short_name: Optional[str] = None
    coordinates: Coordinates
    address: str
    campus: Literal['schloss', 'westerberg', 'haste', 'caprivi', 'other']
    has_accessibility: bool = True
    accessibility_notes: Optional[str] = None
    event_count: int = 0


# --- Routes & travel ---


class TravelTimeSettings(BaseModel):
    """Walking profile and safety margins for travel analysis"""
    walking_speed: WalkingSpeed = 'normal'
    buffer_minutes: float = Field(default=5, ge=0)
    min_warning_minutes: float = Field(default=3, ge=0)
    # When a location is unknown: True reports the transition as ok,
    # False still checks the time gap against the buffer (zero walking time)
    assume_ok_without_location: bool = True

    @property
    def speed_mps(self) -> float:
        return WALKING_SPEEDS[self.walking_speed]

    @property
    def buffer_seconds(self) -> float:
        return self.buffer_minutes * 60

    @property
    def min_warning_seconds(self) -> float:
        return self.min_warning_minutes * 60


class TravelTimeAnalysis(BaseModel):
    """Feasibility of walking from one event to the next"""
    event_from_id: Optional[str] = None
    event_to_id: Optional[str] = None
    event_from_title: Optional[str] = None
    event_to_title: Optional[str] = None
    distance_meters: float = 0.0
    walking_time_seconds: float = 0.0
    time_between_events_seconds: Optional[float] = None
    time_margin_seconds: Optional[float] = None
    has_sufficient_time: bool = True
    location_missing: bool = False
    status: TravelStatus = 'ok'


class TravelSummary(BaseModel):
    total_transitions: int = 0
    ok_count: int = 0
    tight_count: int = 0
    insufficient_count: int = 0
    has_issues: bool = False
    total_walking_time_seconds: float = 0.0
    total_distance_meters: float = 0.0


class TravelAnalysisResult(BaseModel):
    analyses: List[TravelTimeAnalysis] = Field(default_factory=list)
    summary: TravelSummary = Field(default_factory=TravelSummary)


class Waypoint(BaseModel):
    """A point of interest on a visitor's route"""
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    kind: Literal['building', 'event', 'current_location'] = 'event'
    event_id: Optional[str] = None
    title: Optional[str] = None
    time_start: Optional[EventTime] = None
    time_end: Optional[EventTime] = None


class RouteLeg(BaseModel):
    """Walking segment between two consecutive waypoints"""
    model_config = ConfigDict(frozen=True)

    from_waypoint: Waypoint
    to_waypoint: Waypoint
    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    analysis: TravelTimeAnalysis


class RouteWarning(BaseModel):
    type: Literal['insufficient_time'] = 'insufficient_time'
    severity: Literal['warning', 'error']
    message: str
    leg_index: int
    required_time_seconds: float
    available_time_seconds: Optional[float] = None
    event_from_id: Optional[str] = None
    event_to_id: Optional[str] = None


class Route(BaseModel):
    id: str
    waypoints: List[Waypoint]
    legs: List[RouteLeg]
    total_distance_meters: float = 0.0
    total_duration_seconds: float = 0.0
    has_warnings: bool = False
    warnings: List[RouteWarning] = Field(default_factory=list)


class AlternativeSuggestion(BaseModel):
    """Substitute for an event that does not fit the schedule"""
    event_id: str
    title: str
    reason: str
    time_start: Optional[EventTime] = None
    time_end: Optional[EventTime] = None
    new_travel_time_seconds: Optional[float] = None
    travel_status: TravelStatus = 'ok'


# --- Schedule ---


class ScheduleItem(BaseModel):
    """One event in a visitor's schedule; priority grows with importance"""
    event_id: str
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    priority: int = Field(default=1, ge=1)
    added_at: EventTime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def check_times(self):
        if self.start and self.end and self.end <= self.start:
            raise ValueError(f"Schedule item {self.event_id}: end must be after start")
        return self


class TimeConflict(BaseModel):
    item1: ScheduleItem
    item2: ScheduleItem
    overlap_minutes: int = Field(gt=0)


# --- Recommendations ---


class RecommendationContext(BaseModel):
    """Read-only snapshot of the visitor's state"""
    model_config = ConfigDict(frozen=True)

    scheduled_event_ids: List[str] = Field(default_factory=list)
    study_program_ids: List[str] = Field(default_factory=list)
    available_time_slots: List[TimeSlot] = Field(default_factory=list)
    institution: Optional[Institution] = None
    preferred_event_types: List[EventType] = Field(default_factory=list)
    viewed_event_ids: List[str] = Field(default_factory=list)
    dismissed_event_ids: List[str] = Field(default_factory=list)
    max_travel_minutes: float = Field(default=15, gt=0)


class RecommendationFilters(BaseModel):
    start_date: Optional[EventTime] = None
    end_date: Optional[EventTime] = None
    exclude_conflicts: bool = False
    only_high_demand: bool = False
    event_types: Optional[List[EventType]] = None
    min_score: float = Field(default=0, ge=0, le=100)
    limit: int = Field(default=20, ge=1)


class RecommendationReason(BaseModel):
    type: ReasonType
    description: str
    weight: float = Field(ge=0, le=1)


class EventRecommendation(BaseModel):
    event: Event
    score: float = Field(ge=0, le=100)
    reasons: List[RecommendationReason] = Field(default_factory=list)
    conflicts_with_schedule: bool = False
    conflicting_event_ids: List[str] = Field(default_factory=list)
    travel_time_from_previous: Optional[float] = None  # minutes
    is_high_demand: bool = False


class RecommendationGroup(BaseModel):
    category: str
    category_type: GroupType
    recommendations: List[EventRecommendation]
    average_score: float


class RecommendationContextSummary(BaseModel):
    study_program_count: int = 0
    available_slot_count: int = 0
    scheduled_event_count: int = 0


class RecommendationResult(BaseModel):
    recommendations: List[EventRecommendation] = Field(default_factory=list)
    groups: List[RecommendationGroup] = Field(default_factory=list)
    total_available: int = 0
    generated_at: datetime = Field(default_factory=datetime.now)
    context: RecommendationContextSummary = Field(default_factory=RecommendationContextSummary)


class EventPopularity(BaseModel):
    event_id: str
    view_count: int = 0
    add_to_schedule_count: int = 0
    popularity_score: int = Field(default=0, ge=0, le=100)
    trend: Literal['rising', 'stable', 'falling'] = 'stable'


# --- Schedule optimization ---


class SuggestedAction(BaseModel):
    action: Literal['swap', 'remove', 'add', 'move']
    event_ids: List[str] = Field(default_factory=list)
    reason: str


class ScheduleOptimization(BaseModel):
    type: Literal['resolve_conflict', 'fill_gap', 'reduce_travel', 'add_diversity']
    description: str
    suggested_action: SuggestedAction
    benefit_score: float = Field(ge=0, le=100)


class ConflictSummary(BaseModel):
    event1_id: str
    event1_title: str
    event2_id: str
    event2_title: str
    overlap_minutes: int


class DiversityBreakdown(BaseModel):
    event_type_distribution: Dict[str, int] = Field(default_factory=dict)
    study_program_distribution: Dict[str, int] = Field(default_factory=dict)
    location_distribution: Dict[str, int] = Field(default_factory=dict)


class ScheduleOptimizationResult(BaseModel):
    current_score: float = Field(default=0, ge=0, le=100)
    optimizations: List[ScheduleOptimization] = Field(default_factory=list)
    gaps: List[TimeSlot] = Field(default_factory=list)
    conflicts: List[ConflictSummary] = Field(default_factory=list)
    diversity: DiversityBreakdown = Field(default_factory=DiversityBreakdown)


# --- Batch add ---


class BatchAddRequest(BaseModel):
    event_ids: List[str] = Field(min_length=1)
    skip_conflicts: bool = True
    priority_override: Optional[int] = Field(default=None, ge=1)


class BatchItemFailure(BaseModel):
    """Non-fatal, per-item outcome of a batch add"""
    event_id: str
    reason: Literal['conflict', 'not_found', 'duplicate']
    message: str
    conflicting_with: List[str] = Field(default_factory=list)


class BatchAddResult(BaseModel):
    added_count: int = 0
    skipped_count: int = 0
    conflict_count: int = 0
    added_event_ids: List[str] = Field(default_factory=list)
    skipped_event_ids: List[str] = Field(default_factory=list)
    conflicting_event_ids: List[str] = Field(default_factory=list)
    added_items: List[ScheduleItem] = Field(default_factory=list)
    failures: List[BatchItemFailure] = Field(default_factory=list)
