"""
Tests for the route builder and alternative lookup
"""

import pytest

from conftest import BASE_LAT, BASE_LON, at, make_event, north_of
from openday.core.routing import build_route, calculate_route, event_waypoint, find_alternatives
from openday.exceptions import ValidationError
from openday.schemas import Coordinates, TravelTimeSettings, Waypoint


@pytest.fixture
def settings():
    return TravelTimeSettings()


class TestBuildRoute:
    """Test routes through scheduled events"""

    def test_legs_follow_start_order(self, settings):
        """Waypoints are ordered by start time regardless of input order"""
        events = [
            make_event('b', at(11), at(12), lat=north_of(300)),
            make_event('a', at(9), at(10)),
        ]

        route = build_route(events, settings)

        assert [w.id for w in route.waypoints] == ['a', 'b']
        assert len(route.legs) == 1
        assert route.total_distance_meters == pytest.approx(300, abs=0.01)
        assert route.total_duration_seconds == pytest.approx(250, abs=0.01)
        assert route.has_warnings is False
        assert route.warnings == []

    def test_insufficient_leg_gives_error_warning(self, settings):
        """An infeasible walk produces one error-level warning with both IDs"""
        events = [
            make_event('a', at(9), at(10)),
            make_event('b', at(10, 10), at(11), lat=north_of(500)),
            make_event('c', at(12), at(13), lat=north_of(500)),
        ]

        route = build_route(events, settings)

        assert route.has_warnings is True
        assert len(route.warnings) == 1
        warning = route.warnings[0]
        assert warning.severity == 'error'
        assert warning.leg_index == 0
        assert warning.event_from_id == 'a'
        assert warning.event_to_id == 'b'
        assert warning.available_time_seconds == 600

    def test_tight_leg_gives_warning(self, settings):
        """A tight walk produces a warning-level entry"""
        events = [make_event('a', at(9), at(10)), make_event('b', at(10, 7), at(11), lat=north_of(120))]

        route = build_route(events, settings)

        assert [w.severity for w in route.warnings] == ['warning']

    def test_current_location_is_first(self, settings):
        """The visitor's position is prepended as the starting waypoint"""
        here = Coordinates(latitude=north_of(100), longitude=BASE_LON)
        events = [make_event('a', at(9), at(10)), make_event('b', at(11), at(12))]

        route = build_route(events, settings, current_location=here)

        assert route.waypoints[0].kind == 'current_location'
        assert len(route.legs) == 2
        assert route.legs[0].distance_meters == pytest.approx(100, abs=0.01)
        assert route.legs[0].analysis.status == 'ok'

    def test_unknown_location_leg_has_zero_distance(self, settings):
        """Events without a position still appear, with zero-length legs"""
        events = [make_event('a', at(9), at(10)), make_event('b', at(10), at(11), lat=None)]

        route = build_route(events, settings)

        assert route.waypoints[1].coordinates is None
        assert route.legs[0].distance_meters == 0
        assert route.legs[0].analysis.location_missing is True
        assert route.has_warnings is False

    def test_single_event_is_rejected(self, settings):
        """A route needs at least two waypoints"""
        with pytest.raises(ValidationError):
            build_route([make_event('a', at(9), at(10))], settings)


class TestCalculateRoute:
    """Test routes through explicit waypoints"""

    def test_waypoints_kept_in_given_order(self, settings):
        """Explicit waypoints are walked as given"""
        waypoints = [
            Waypoint(id='x', name='X', kind='building', coordinates=Coordinates(latitude=north_of(400), longitude=BASE_LON)),
            Waypoint(id='y', name='Y', kind='building', coordinates=Coordinates(latitude=BASE_LAT, longitude=BASE_LON)),
        ]

        route = calculate_route(waypoints, settings)

        assert [w.id for w in route.waypoints] == ['x', 'y']
        assert route.total_distance_meters == pytest.approx(400, abs=0.01)
        assert route.has_warnings is False

    def test_empty_waypoints_rejected(self, settings):
        """No waypoints is a validation error"""
        with pytest.raises(ValidationError):
            calculate_route([], settings)

    def test_event_waypoint(self):
        """Event waypoints carry the event's times and title"""
        waypoint = event_waypoint(make_event('a', at(9), at(10), building='AVZ'))

        assert waypoint.event_id == 'a'
        assert waypoint.name == 'AVZ'
        assert waypoint.time_end == at(10)


class TestFindAlternatives:
    """Test substitute suggestions"""

    def test_related_events_that_fit(self, settings):
        """Only related, non-overlapping, unscheduled events are suggested"""
        conflicting = make_event('x', at(10), at(11), 'WORKSHOP', ['informatik'])
        scheduled = make_event('s', at(9), at(10), 'VORTRAG', ['biologie'])
        candidates = [
            conflicting,
            scheduled,
            make_event('same-program', at(13), at(14), 'VORTRAG', ['informatik']),
            make_event('same-type', at(15), at(16), 'WORKSHOP', ['physik']),
            make_event('unrelated', at(13), at(14), 'RUNDGANG', ['physik']),
            make_event('overlaps', at(9, 30), at(10, 30), 'WORKSHOP', ['informatik']),
            make_event('untimed', None, None, 'WORKSHOP', ['informatik']),
        ]

        result = find_alternatives(conflicting, [scheduled, conflicting], candidates, settings)

        assert [a.event_id for a in result] == ['same-program', 'same-type']
        assert 'same study program' in result[0].reason

    def test_better_travel_ranks_first(self, settings):
        """A feasible walk beats an infeasible one"""
        conflicting = make_event('x', at(10), at(11), 'WORKSHOP', ['informatik'])
        scheduled = make_event('s', at(9), at(10), 'VORTRAG', [])
        far = make_event('far', at(10, 5), at(10, 50), 'WORKSHOP', [], lat=north_of(900))
        near = make_event('near', at(10, 30), at(11, 30), 'WORKSHOP', [], lat=north_of(50))

        result = find_alternatives(conflicting, [scheduled, conflicting], [far, near], settings)

        assert [a.event_id for a in result] == ['near', 'far']
        assert result[0].travel_status == 'ok'
        assert result[1].travel_status == 'insufficient'

    def test_limit(self, settings):
        """No more than limit suggestions"""
        conflicting = make_event('x', at(10), at(11), 'WORKSHOP')
        candidates = [make_event(f"w{i}", at(12 + i % 4), at(12 + i % 4, 30), 'WORKSHOP') for i in range(8)]

        assert len(find_alternatives(conflicting, [conflicting], candidates, settings, limit=3)) == 3

    def test_unknown_conflicting_event(self, settings):
        """No conflicting event, no suggestions"""
        assert find_alternatives(None, [], [make_event('a', at(9), at(10))], settings) == []
