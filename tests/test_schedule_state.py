"""
Tests for the schedule reducer and share tokens
"""

import pytest

from conftest import at
from openday.core.schedule_state import (
    AddEvent,
    ClearSchedule,
    LoadSchedule,
    RemoveEvent,
    ScheduleState,
    UpdatePriority,
    decode_share_token,
    encode_share_token,
    schedule_reducer,
)
from openday.exceptions import ValidationError
from openday.schemas import ScheduleItem


def item(event_id, start, end, priority=1):
    return ScheduleItem(event_id=event_id, start=start, end=end, priority=priority)


@pytest.fixture
def loaded():
    return schedule_reducer(ScheduleState(), LoadSchedule(items=[item('a', at(9), at(10)), item('b', at(11), at(12))]))


class TestReducer:
    """Test state transitions"""

    def test_load(self, loaded):
        """Loading marks the state and keeps the items"""
        assert loaded.is_loaded is True
        assert loaded.event_ids == ['a', 'b']
        assert loaded.conflicts == []

    def test_add_recomputes_conflicts(self, loaded):
        """Adding an overlapping event produces a conflict"""
        state = schedule_reducer(loaded, AddEvent(item=item('c', at(9, 30), at(10, 30))))

        assert state.event_ids == ['a', 'b', 'c']
        assert len(state.conflicts) == 1
        assert state.conflicts[0].overlap_minutes == 30

    def test_add_duplicate_is_ignored(self, loaded):
        """An event already in the schedule is not added twice"""
        state = schedule_reducer(loaded, AddEvent(item=item('a', at(13), at(14))))
        assert state is loaded

    def test_remove(self, loaded):
        """Removing drops the item and its conflicts"""
        state = schedule_reducer(loaded, AddEvent(item=item('c', at(9, 30), at(10, 30))))
        state = schedule_reducer(state, RemoveEvent(event_id='c'))

        assert state.event_ids == ['a', 'b']
        assert state.conflicts == []

    def test_update_priority(self, loaded):
        """Only the targeted item changes"""
        state = schedule_reducer(loaded, UpdatePriority(event_id='b', priority=3))
        assert [i.priority for i in state.items] == [1, 3]

    def test_update_priority_rejects_zero(self, loaded):
        """Priorities start at one"""
        with pytest.raises(ValidationError):
            schedule_reducer(loaded, UpdatePriority(event_id='b', priority=0))

    def test_clear(self, loaded):
        """Clearing empties the schedule"""
        state = schedule_reducer(loaded, ClearSchedule())
        assert state.items == []
        assert state.conflicts == []

    def test_input_state_is_untouched(self, loaded):
        """The reducer never mutates its input"""
        schedule_reducer(loaded, AddEvent(item=item('c', at(13), at(14))))
        schedule_reducer(loaded, RemoveEvent(event_id='a'))
        assert loaded.event_ids == ['a', 'b']

    def test_unknown_action(self, loaded):
        """Unknown actions are a programming error"""
        with pytest.raises(ValueError):
            schedule_reducer(loaded, object())


class TestShareToken:
    """Test share tokens"""

    def test_decode_returns_encoded_ids(self):
        """Decoding restores the IDs in order"""
        token = encode_share_token(['evt-2', 'evt-1'])
        assert decode_share_token(token) == ['evt-2', 'evt-1']

    def test_token_is_url_safe(self):
        """Tokens contain no characters needing escaping"""
        token = encode_share_token(['ä?/+', 'x' * 40])
        assert all(c.isalnum() or c in '-_' for c in token)

    @pytest.mark.parametrize("token", ['***', 'bm90IGpzb24', 'eyJhIjogMX0'])
    def test_invalid_tokens(self, token):
        """Garbage, non-JSON and non-list payloads are rejected"""
        with pytest.raises(ValidationError):
            decode_share_token(token)
