"""
Request helpers shared by the routers
"""

import logging
from typing import List, Sequence

from ..core.engine import OpenDayEngine
from ..schemas import ScheduleItem
from .models import ScheduleEntry

logger = logging.getLogger(__name__)


def resolve_schedule(
    engine: OpenDayEngine,
    schedule: Sequence[ScheduleEntry] = (),
    event_ids: Sequence[str] = (),
) -> List[ScheduleItem]:
    """
    Build schedule items from client entries and bare event IDs.

    Entry times win over catalog times; bare IDs take the catalog's times
    and unknown bare IDs are dropped.
    """
    items: List[ScheduleItem] = []
    seen = set()

    for entry in schedule:
        if entry.event_id in seen:
            continue
        seen.add(entry.event_id)

        event = engine.catalog.get(entry.event_id)
        start = entry.start or (event.time_start if event else None)
        end = entry.end or (event.time_end if event else None)
        fields = {'event_id': entry.event_id, 'start': start, 'end': end, 'priority': entry.priority}
        if entry.added_at is not None:
            fields['added_at'] = entry.added_at
        items.append(ScheduleItem(**fields))

    remaining = [i for i in event_ids if i not in seen]
    items.extend(engine.items_for(list(dict.fromkeys(remaining))))

    logger.debug(f"Resolved {len(items)} schedule items")
    return items
