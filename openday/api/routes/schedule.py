"""
Schedule endpoints
Conflict checks and shareable schedule links
"""

import logging
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...core.engine import get_engine
from ...core.schedule_state import LoadSchedule, ScheduleState, decode_share_token, encode_share_token, schedule_reducer
from ...schemas import ScheduleItem, TimeConflict
from ..models import ConflictRequest, ConflictResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class ShareRequest(BaseModel):
    event_ids: List[str] = Field(min_length=1)


class ShareResponse(BaseModel):
    token: str


class SharedScheduleResponse(BaseModel):
    items: List[ScheduleItem]
    conflicts: List[TimeConflict]
    unknown_event_ids: List[str]


@router.post("/conflicts", response_model=ConflictResponse)
def check_conflicts(request: ConflictRequest):
    """Report every overlapping pair of schedule items"""
    conflicts = get_engine().detect_conflicts(request.items)
    return ConflictResponse(conflicts=conflicts, has_conflicts=bool(conflicts))


@router.post("/share", response_model=ShareResponse)
def share_schedule(request: ShareRequest):
    """Encode a schedule's event IDs into a link token"""
    return ShareResponse(token=encode_share_token(request.event_ids))


@router.get("/share/{token}", response_model=SharedScheduleResponse)
def load_shared_schedule(token: str):
    """Load a shared schedule, with catalog times and conflicts"""
    engine = get_engine()
    event_ids = decode_share_token(token)

    state = schedule_reducer(ScheduleState(), LoadSchedule(items=engine.items_for(event_ids)))
    unknown = [i for i in event_ids if i not in engine.catalog]
    if unknown:
        logger.info(f"Shared schedule references {len(unknown)} unknown events")

    return SharedScheduleResponse(items=state.items, conflicts=state.conflicts, unknown_event_ids=unknown)
