"""
Schedule State Machine
Pure reducer over a visitor's schedule plus share-token helpers
"""

import base64
import binascii
import json
from dataclasses import dataclass, field, replace
from typing import List, Union

from ..exceptions import ValidationError
from ..schemas import ScheduleItem, TimeConflict
from .conflicts import detect_conflicts


@dataclass(frozen=True)
class ScheduleState:
    items: List[ScheduleItem] = field(default_factory=list)
    conflicts: List[TimeConflict] = field(default_factory=list)
    is_loaded: bool = False

    @property
    def event_ids(self) -> List[str]:
        return [item.event_id for item in self.items]


@dataclass(frozen=True)
class LoadSchedule:
    items: List[ScheduleItem]


@dataclass(frozen=True)
class AddEvent:
    item: ScheduleItem


@dataclass(frozen=True)
class RemoveEvent:
    event_id: str


@dataclass(frozen=True)
class UpdatePriority:
    event_id: str
    priority: int


@dataclass(frozen=True)
class ClearSchedule:
    pass


ScheduleAction = Union[LoadSchedule, AddEvent, RemoveEvent, UpdatePriority, ClearSchedule]


def _with_items(state: ScheduleState, items: List[ScheduleItem]) -> ScheduleState:
    return replace(state, items=items, conflicts=detect_conflicts(items))


def schedule_reducer(state: ScheduleState, action: ScheduleAction) -> ScheduleState:
    """Return the next state; the given state is never modified"""
    if isinstance(action, LoadSchedule):
        return replace(_with_items(state, list(action.items)), is_loaded=True)

    if isinstance(action, AddEvent):
        if action.item.event_id in state.event_ids:
            return state
        return _with_items(state, state.items + [action.item])

    if isinstance(action, RemoveEvent):
        return _with_items(state, [i for i in state.items if i.event_id != action.event_id])

    if isinstance(action, UpdatePriority):
        if action.priority < 1:
            raise ValidationError("Priority must be at least 1", field='priority')
        items = [
            i.model_copy(update={'priority': action.priority}) if i.event_id == action.event_id else i
            for i in state.items
        ]
        return _with_items(state, items)

    if isinstance(action, ClearSchedule):
        return ScheduleState(is_loaded=state.is_loaded)

    raise ValueError(f"Unknown schedule action: {action!r}")


def encode_share_token(event_ids: List[str]) -> str:
    """URL-safe token listing a schedule's event IDs"""
    payload = json.dumps(list(event_ids), separators=(',', ':')).encode('utf-8')
    return base64.urlsafe_b64encode(payload).decode('ascii').rstrip('=')


def decode_share_token(token: str) -> List[str]:
    padded = token + '=' * (-len(token) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode('ascii')).decode('utf-8'))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationError(f"Invalid share token: {e}", field='token')

    if not isinstance(data, list) or not all(isinstance(i, str) for i in data):
        raise ValidationError("Share token does not contain a list of event IDs", field='token')
    return data
