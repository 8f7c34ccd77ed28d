"""
Event Catalog
Read-only, in-memory store of open-day events loaded from JSON
"""

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import CatalogError, NotFoundError
from ..schemas import BuildingInfo, Event, EventType, Institution, ScheduleItem
from .buildings import CAMPUS_BUILDINGS, find_building_by_name

logger = logging.getLogger(__name__)


class EventCatalog:
    """
    Events keyed by ID, in load order.

    Locations that name a known building but carry no coordinates get the
    building's coordinates when the event is added.
    """

    def __init__(self, events: Iterable[Event] = (), buildings: Optional[List[BuildingInfo]] = None):
        self.buildings = CAMPUS_BUILDINGS if buildings is None else buildings
        self._events: Dict[str, Event] = {}
        for event in events:
            self.add(event)

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]], buildings: Optional[List[BuildingInfo]] = None) -> 'EventCatalog':
        """Build a catalog from raw dicts, skipping records that do not validate"""
        catalog = cls(buildings=buildings)
        skipped = 0
        for index, record in enumerate(records):
            try:
                catalog.add(Event.model_validate(record))
            except PydanticValidationError as e:
                skipped += 1
                logger.warning(f"Skipping invalid event record #{index} ({record.get('id', '?')}): {e.error_count()} errors")

        if skipped:
            logger.warning(f"Skipped {skipped} of {len(records)} event records")
        return catalog

    @classmethod
    def from_json_file(cls, path: str, buildings: Optional[List[BuildingInfo]] = None) -> 'EventCatalog':
        """
        Load a catalog from a JSON file holding either a list of events or
        an object with an "events" list.
        """
        if not os.path.exists(path):
            raise CatalogError(f"Catalog file not found: {path}", source=path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Could not read catalog: {e}", source=path)

        records = data.get('events') if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CatalogError("Catalog must be a list of events or contain an 'events' list", source=path)

        catalog = cls.from_records(records, buildings=buildings)
        logger.info(f"✅ Loaded {len(catalog)} events from {path}")
        return catalog

    def _with_building_coordinates(self, event: Event) -> Event:
        location = event.location
        if location is None or location.coordinates is not None or not location.building_name:
            return event

        building = find_building_by_name(location.building_name, self.buildings)
        if building is None:
            return event

        located = location.model_copy(update={
            'latitude': building.coordinates.latitude,
            'longitude': building.coordinates.longitude,
            'address': location.address or building.address,
        })
        return event.model_copy(update={'location': located})

    def add(self, event: Event) -> Event:
        event = self._with_building_coordinates(event)
        if event.id in self._events:
            logger.warning(f"Duplicate event id {event.id}, keeping the later record")
        self._events[event.id] = event
        return event

    def get(self, event_id: str) -> Optional[Event]:
        return self._events.get(event_id)

    def require(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError(f"Event not found: {event_id}", event_id=event_id)
        return event

    def get_many(self, event_ids: Iterable[str]) -> List[Event]:
        """Known events in the order requested; unknown IDs are dropped"""
        return [self._events[i] for i in event_ids if i in self._events]

    def all(self) -> List[Event]:
        return list(self._events.values())

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def search(
        self,
        exclude_ids: Iterable[str] = (),
        institution: Optional[Institution] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        event_types: Optional[Sequence[EventType]] = None,
    ) -> List[Event]:
        """
        Filter the catalog.

        institution keeps events of that institution plus shared (BOTH)
        events. Date bounds apply to time_start; events without a start
        time are dropped when a bound is given.
        """
        excluded = set(exclude_ids)
        results = []
        for event in self._events.values():
            if event.id in excluded:
                continue
            if institution is not None and institution != Institution.BOTH:
                if event.institution not in (institution, Institution.BOTH):
                    continue
            if start_date is not None and (event.time_start is None or event.time_start < start_date):
                continue
            if end_date is not None and (event.time_start is None or event.time_start > end_date):
                continue
            if event_types and event.event_type not in event_types:
                continue
            results.append(event)
        return results

    def schedule_items(self, event_ids: Iterable[str], priority: int = 1) -> List[ScheduleItem]:
        """Schedule items carrying the catalog times of the given events"""
        items = []
        for event in self.get_many(event_ids):
            items.append(ScheduleItem(
                event_id=event.id,
                start=event.time_start,
                end=event.time_end,
                priority=priority,
            ))
        return items

    def buildings_with_counts(self) -> List[BuildingInfo]:
        """Building table annotated with how many catalog events each hosts"""
        counts: Dict[str, int] = {}
        for event in self._events.values():
            building = find_building_by_name(event.building_name, self.buildings)
            if building:
                counts[building.id] = counts.get(building.id, 0) + 1

        return [b.model_copy(update={'event_count': counts.get(b.id, 0)}) for b in self.buildings]
