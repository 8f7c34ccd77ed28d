"""
Tests for popularity tracking
"""

import threading

import pytest

from openday.core.popularity import (
    InMemoryPopularityStore,
    PopularitySnapshot,
    high_demand_threshold,
    popularity_score,
    popularity_trend,
)


class TestPopularityScore:
    """Test score and trend formulas"""

    def test_schedule_adds_weigh_ten_views(self):
        """(views + 10 x adds) / 2, floored"""
        assert popularity_score(0, 0) == 0
        assert popularity_score(3, 0) == 1
        assert popularity_score(4, 1) == 7
        assert popularity_score(20, 4) == 30

    def test_score_is_capped(self):
        """Scores never exceed 100"""
        assert popularity_score(500, 50) == 100

    def test_trend(self):
        """Rising with good conversion, falling with views and no adds"""
        assert popularity_trend(0, 0) == 'stable'
        assert popularity_trend(0, 2) == 'rising'
        assert popularity_trend(8, 2) == 'rising'
        assert popularity_trend(10, 0) == 'falling'
        assert popularity_trend(9, 0) == 'stable'
        assert popularity_trend(20, 1) == 'stable'


class TestInMemoryStore:
    """Test the in-memory store"""

    @pytest.fixture
    def store(self):
        return InMemoryPopularityStore()

    def test_unknown_event_is_zero(self, store):
        """Untracked events have no popularity"""
        entry = store.get_popularity('nope')
        assert entry.view_count == 0
        assert entry.add_to_schedule_count == 0
        assert entry.popularity_score == 0
        assert entry.trend == 'stable'

    def test_tracking(self, store):
        """Views and schedule adds are counted separately"""
        for _ in range(4):
            store.track_view('a')
        store.track_scheduled('a')

        entry = store.get_popularity('a')
        assert entry.view_count == 4
        assert entry.add_to_schedule_count == 1
        assert entry.popularity_score == 7

    def test_top_orders_by_score_then_id(self, store):
        """Most popular first, ties by ID"""
        store.track_scheduled('b')
        store.track_scheduled('a')
        store.track_view('c')

        assert [p.event_id for p in store.top(10)] == ['a', 'b', 'c']
        assert [p.event_id for p in store.top(1)] == ['a']

    def test_reset(self, store):
        """Reset clears every counter"""
        store.track_view('a')
        store.reset()
        assert store.snapshot() == {}

    def test_concurrent_increments_are_not_lost(self, store):
        """Parallel tracking keeps exact counts"""
        def worker():
            for _ in range(500):
                store.track_view('hot')
                store.track_scheduled('hot')

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        entry = store.get_popularity('hot')
        assert entry.view_count == 4000
        assert entry.add_to_schedule_count == 4000


class TestHighDemand:
    """Test the percentile threshold"""

    def test_threshold_percentile(self):
        """80th percentile of 0..10"""
        assert high_demand_threshold(range(11), 80) == pytest.approx(8.0)

    def test_empty(self):
        """No scores, zero threshold"""
        assert high_demand_threshold([]) == 0.0

    def test_snapshot_flags_top_events(self):
        """Only events above the threshold (and above zero) are high demand"""
        store = InMemoryPopularityStore()
        for _ in range(20):
            store.track_scheduled('star')
        store.track_view('a')
        store.track_view('a')

        snapshot = PopularitySnapshot(store.snapshot(), catalog_ids=['star', 'a', 'b', 'c', 'd', 'e'])

        assert snapshot.is_high_demand('star') is True
        assert snapshot.is_high_demand('a') is False
        assert snapshot.is_high_demand('b') is False

    def test_all_zero_is_never_high_demand(self):
        """Without any activity nothing is high demand"""
        snapshot = PopularitySnapshot({}, catalog_ids=['a', 'b'])
        assert snapshot.is_high_demand('a') is False
