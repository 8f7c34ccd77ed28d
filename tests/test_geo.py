"""
Tests for distance and time primitives
"""

import pytest

from conftest import BASE_LAT, BASE_LON, at, north_of
from openday.core.geo import (
    distance_matrix,
    fits_within,
    format_distance,
    format_duration,
    haversine_distance,
    optional_distance,
    overlap_minutes,
    path_length,
    walking_time_seconds,
)
from openday.schemas import Coordinates, TimeSlot


def point(lat, lon=BASE_LON):
    return Coordinates(latitude=lat, longitude=lon)


class TestHaversine:
    """Test great-circle distance"""

    def test_same_point_is_zero(self):
        """Distance from a point to itself is zero"""
        p = point(BASE_LAT)
        assert haversine_distance(p, p) == 0

    def test_known_distance_along_meridian(self):
        """500 m due north measures 500 m"""
        assert haversine_distance(point(BASE_LAT), point(north_of(500))) == pytest.approx(500, abs=0.01)

    def test_symmetric(self):
        """Distance does not depend on direction"""
        a, b = point(52.2728, 8.0432), point(52.2816, 8.0234)
        assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a))

    def test_schloss_to_westerberg(self):
        """Campus distances are in the expected range"""
        schloss, avz = point(52.2728, 8.0432), point(52.2816, 8.0234)
        assert 1500 < haversine_distance(schloss, avz) < 1800

    def test_optional_distance_missing(self):
        """Missing side yields None"""
        assert optional_distance(None, point(BASE_LAT)) is None
        assert optional_distance(point(BASE_LAT), None) is None


class TestDistanceMatrix:
    """Test vectorised distances"""

    def test_matches_scalar_distance(self):
        """Matrix entries equal pairwise haversine distances"""
        points = [point(BASE_LAT), point(north_of(300)), point(52.2728, 8.0432)]
        matrix = distance_matrix(points)

        assert matrix.shape == (3, 3)
        for i in range(3):
            assert matrix[i][i] == pytest.approx(0, abs=1e-6)
            for j in range(3):
                assert matrix[i][j] == pytest.approx(haversine_distance(points[i], points[j]), rel=1e-9)

    def test_empty(self):
        """No points gives an empty matrix"""
        assert distance_matrix([]).shape == (0, 0)

    def test_path_length(self):
        """Path length sums consecutive legs in the given order"""
        points = [point(BASE_LAT), point(north_of(300)), point(north_of(100))]
        assert path_length(points) == pytest.approx(300 + 200, abs=0.01)
        assert path_length(points, order=[0, 2, 1]) == pytest.approx(100 + 200, abs=0.01)


class TestOverlap:
    """Test interval overlap"""

    def test_partial_overlap(self):
        """09:00-10:00 and 09:30-10:30 share 30 minutes"""
        assert overlap_minutes(at(9), at(10), at(9, 30), at(10, 30)) == 30

    def test_symmetric(self):
        """Order of the intervals does not matter"""
        assert overlap_minutes(at(9, 30), at(10, 30), at(9), at(10)) == 30

    def test_touching_is_zero(self):
        """Back-to-back intervals do not overlap"""
        assert overlap_minutes(at(9), at(10), at(10), at(11)) == 0

    def test_disjoint_is_zero(self):
        """Separate intervals do not overlap"""
        assert overlap_minutes(at(9), at(10), at(11), at(12)) == 0

    def test_containment(self):
        """A contained interval overlaps by its own length"""
        assert overlap_minutes(at(9), at(12), at(10), at(10, 45)) == 45

    def test_partial_minutes_floor(self):
        """Seconds are floored to whole minutes"""
        start = at(9)
        assert overlap_minutes(start, at(10), at(9, 59).replace(second=30), at(11)) == 0


class TestSlotsAndTimes:
    """Test slot fit, walking time and formatting"""

    def test_fits_within(self):
        """Interval inside a slot fits; edges are inclusive"""
        slot = TimeSlot(start=at(9), end=at(12))
        assert fits_within(at(9), at(12), slot)
        assert fits_within(at(10), at(11), slot)
        assert not fits_within(at(11), at(12, 30), slot)
        assert not fits_within(None, at(10), slot)

    def test_walking_time(self):
        """Walking time is distance over speed"""
        assert walking_time_seconds(500, 1.2) == pytest.approx(416.67, abs=0.01)

    def test_walking_time_requires_positive_speed(self):
        """Zero speed is rejected"""
        with pytest.raises(ValueError):
            walking_time_seconds(100, 0)

    def test_format_duration(self):
        """Durations are rounded to minutes"""
        assert format_duration(20) == "less than 1 min"
        assert format_duration(60) == "1 min"
        assert format_duration(600) == "10 min"

    def test_format_distance(self):
        """Short distances in meters, long ones in kilometers"""
        assert format_distance(420.4) == "420m"
        assert format_distance(1540) == "1.5km"
