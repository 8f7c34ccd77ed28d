"""
Tests for schedule conflict detection
"""

from datetime import datetime, timedelta, timezone

from conftest import at
from openday.core.conflicts import conflicting_ids, detect_conflicts
from openday.schemas import ScheduleItem


def item(event_id, start=None, end=None, priority=1):
    return ScheduleItem(event_id=event_id, start=start, end=end, priority=priority)


class TestDetectConflicts:
    """Test pairwise conflict detection"""

    def test_single_overlap(self):
        """09:00-10:00 and 09:30-10:30 give one 30 minute conflict"""
        conflicts = detect_conflicts([item('a', at(9), at(10)), item('b', at(9, 30), at(10, 30))])

        assert len(conflicts) == 1
        assert conflicts[0].item1.event_id == 'a'
        assert conflicts[0].item2.event_id == 'b'
        assert conflicts[0].overlap_minutes == 30

    def test_input_order_reversed(self):
        """Swapping the input swaps item1/item2 but not the overlap"""
        conflicts = detect_conflicts([item('b', at(9, 30), at(10, 30)), item('a', at(9), at(10))])

        assert len(conflicts) == 1
        assert conflicts[0].item1.event_id == 'b'
        assert conflicts[0].overlap_minutes == 30

    def test_back_to_back_is_not_a_conflict(self):
        """Touching intervals do not conflict"""
        assert detect_conflicts([item('a', at(9), at(10)), item('b', at(10), at(11))]) == []

    def test_each_pair_reported_once(self):
        """Three mutually overlapping items give three pairs"""
        items = [item('a', at(9), at(11)), item('b', at(9, 30), at(11)), item('c', at(10), at(10, 30))]
        pairs = [(c.item1.event_id, c.item2.event_id) for c in detect_conflicts(items)]

        assert pairs == [('a', 'b'), ('a', 'c'), ('b', 'c')]

    def test_items_without_times_are_ignored(self):
        """Items missing start or end never conflict"""
        items = [item('a', at(9), at(10)), item('b'), item('c', at(9, 15), None)]
        assert detect_conflicts(items) == []

    def test_empty_schedule(self):
        """No items, no conflicts"""
        assert detect_conflicts([]) == []


class TestConflictingIds:
    """Test conflicts of a single candidate interval"""

    def test_lists_overlapping_items(self):
        """Only overlapping items are returned, in schedule order"""
        schedule = [item('a', at(9), at(10)), item('b', at(10), at(11)), item('c', at(9, 45), at(12))]
        assert conflicting_ids(at(9, 30), at(10), schedule) == ['a', 'c']

    def test_excludes_own_event(self):
        """An item never conflicts with itself"""
        schedule = [item('a', at(9), at(10))]
        assert conflicting_ids(at(9), at(10), schedule, exclude_event_id='a') == []

    def test_candidate_without_times(self):
        """A candidate without times has no conflicts"""
        assert conflicting_ids(None, None, [item('a', at(9), at(10))]) == []


class TestMixedTimeZones:
    """Aware client times are compared in the event's local time"""

    def test_aware_and_naive_items(self):
        """A UTC item overlaps a naive local item instead of failing to compare"""
        utc_item = ScheduleItem(event_id='a', start='2026-11-14T08:00:00Z', end='2026-11-14T09:00:00Z')
        local_item = item('b', at(9, 30), at(10, 30))

        conflicts = detect_conflicts([utc_item, local_item])

        assert utc_item.start == at(9)
        assert utc_item.start.tzinfo is None
        assert len(conflicts) == 1
        assert conflicts[0].overlap_minutes == 30

    def test_offset_times_are_converted(self):
        """Explicit offsets land on the same local wall-clock time"""
        shifted = item('a', datetime(2026, 11, 14, 10, 0, tzinfo=timezone(timedelta(hours=2))), at(11))
        assert shifted.start == at(9)

    def test_candidate_against_aware_schedule(self):
        """Naive candidates check cleanly against items sent with offsets"""
        schedule = [ScheduleItem(event_id='a', start='2026-11-14T08:00:00+00:00', end='2026-11-14T09:00:00+00:00')]
        assert conflicting_ids(at(9, 30), at(10), schedule) == ['a']
