# geo.py
# distance and time helpers shared by every part of the engine
# distances are straight-line ("as the crow flies"), not walking paths

import math
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from ..schemas import Coordinates, TimeSlot

EARTH_RADIUS_M = 6371000.0


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters"""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def optional_distance(a: Optional[Coordinates], b: Optional[Coordinates]) -> Optional[float]:
    # None when either side has no position
    if a is None or b is None:
        return None
    return haversine_distance(a, b)


def distance_matrix(points: Sequence[Coordinates]) -> np.ndarray:
    """
    Pairwise haversine distances (meters) as an n x n matrix.
    """
    if not points:
        return np.zeros((0, 0))

    lat = np.radians(np.array([p.latitude for p in points], dtype=float))
    lon = np.radians(np.array([p.longitude for p in points], dtype=float))

    dlat = lat[:, None] - lat[None, :]
    dlon = lon[:, None] - lon[None, :]
    h = np.sin(dlat / 2) ** 2 + np.cos(lat[:, None]) * np.cos(lat[None, :]) * np.sin(dlon / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def path_length(points: Sequence[Coordinates], order: Optional[List[int]] = None) -> float:
    """Total distance visiting points in the given order (default: as listed)"""
    if len(points) < 2:
        return 0.0
    order = order if order is not None else list(range(len(points)))
    matrix = distance_matrix(points)
    return float(sum(matrix[order[i], order[i + 1]] for i in range(len(order) - 1)))


def overlap_minutes(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> int:
    """Whole minutes two [start, end) intervals share; 0 when they only touch"""
    overlap = min(end1, end2) - max(start1, start2)
    seconds = max(0.0, overlap.total_seconds())
    return int(seconds // 60)


def fits_within(start: Optional[datetime], end: Optional[datetime], slot: TimeSlot) -> bool:
    if start is None or end is None:
        return False
    return start >= slot.start and end <= slot.end


def walking_time_seconds(distance_meters: float, speed_mps: float) -> float:
    if speed_mps <= 0:
        raise ValueError("walking speed must be positive")
    return distance_meters / speed_mps


def format_duration(seconds: float) -> str:
    minutes = round(seconds / 60)
    if minutes < 1:
        return "less than 1 min"
    if minutes == 1:
        return "1 min"
    return f"{minutes} min"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
