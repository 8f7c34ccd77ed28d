"""
Shared fixtures for engine and API tests
"""

import math
import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from openday.core.engine import OpenDayEngine
from openday.core.popularity import InMemoryPopularityStore
from openday.metrics import get_metrics
from openday.schemas import Event, EventLocation, StudyProgramRef
from openday.tools.catalog import EventCatalog

DAY = datetime(2026, 11, 14)
BASE_LAT = 52.2800
BASE_LON = 8.0240


def at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def north_of(meters: float, lat: float = BASE_LAT) -> float:
    """Latitude that lies the given distance due north (same meridian)"""
    return lat + math.degrees(meters / 6371000.0)


def make_event(
    event_id,
    start=None,
    end=None,
    event_type='VORTRAG',
    programs=(),
    lat=BASE_LAT,
    lon=BASE_LON,
    building=None,
    institution='BOTH',
    title=None,
):
    location = None
    if lat is not None or building is not None:
        location = EventLocation(
            building_name=building,
            latitude=lat,
            longitude=lon if lat is not None else None,
        )
    return Event(
        id=event_id,
        title=title or f"Event {event_id}",
        event_type=event_type,
        institution=institution,
        time_start=start,
        time_end=end,
        study_programs=[StudyProgramRef(id=p, name=p.title()) for p in programs],
        location=location,
    )


@pytest.fixture
def sample_events():
    """A small open-day programme on one campus"""
    return [
        make_event('e1', at(9), at(10), 'VORTRAG', ['informatik'], building='Mathe'),
        make_event('e2', at(9, 30), at(10, 30), 'WORKSHOP', ['informatik'], lat=north_of(200), building='Mathe'),
        make_event('e3', at(11), at(12), 'LABORFUEHRUNG', ['biologie'], lat=north_of(400), building='Bio'),
        make_event('e4', at(13), at(14), 'RUNDGANG', [], lat=north_of(800), building='Bio'),
        make_event('e5', at(14, 30), at(15, 30), 'VORTRAG', ['physik'], lat=north_of(300), building='Physik'),
        make_event('e6', at(10, 30), at(11), 'INFOSTAND', ['informatik', 'biologie'], lat=None),
        make_event('e7', None, None, 'LINK', ['physik'], lat=None),
    ]


@pytest.fixture
def catalog(sample_events):
    return EventCatalog(sample_events, buildings=[])


@pytest.fixture
def popularity():
    return InMemoryPopularityStore()


@pytest.fixture
def engine(catalog, popularity):
    return OpenDayEngine(catalog, popularity)


@pytest.fixture(autouse=True)
def reset_metrics():
    get_metrics().reset()
    yield
