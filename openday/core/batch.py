"""
Batch Add Processor
Adds several events to a schedule in one go, reporting what happened to each
"""

import logging
from typing import Callable, List, Optional, Sequence

from ..schemas import BatchAddRequest, BatchAddResult, BatchItemFailure, Event, ScheduleItem
from .conflicts import conflicting_ids

logger = logging.getLogger(__name__)

EventLookup = Callable[[str], Optional[Event]]


def batch_add(
    request: BatchAddRequest,
    schedule: Sequence[ScheduleItem],
    lookup: EventLookup,
    default_priority: int = 1,
) -> BatchAddResult:
    """
    Process IDs in request order.

    Each event is checked against the existing schedule plus everything
    accepted earlier in the same batch. Every requested ID ends up either
    added or skipped, so added_count + skipped_count == len(event_ids).
    """
    accepted: List[ScheduleItem] = list(schedule)
    seen = {item.event_id for item in schedule}
    priority = request.priority_override or default_priority
    result = BatchAddResult()

    def skip(event_id: str, failure: Optional[BatchItemFailure] = None):
        result.skipped_event_ids.append(event_id)
        if failure is not None:
            result.failures.append(failure)

    for event_id in request.event_ids:
        if event_id in seen:
            skip(event_id, BatchItemFailure(
                event_id=event_id, reason='duplicate', message="Event is already in the schedule",
            ))
            continue
        seen.add(event_id)

        event = lookup(event_id)
        if event is None:
            skip(event_id, BatchItemFailure(
                event_id=event_id, reason='not_found', message="Event does not exist",
            ))
            continue

        clashes = conflicting_ids(event.time_start, event.time_end, accepted)
        if clashes:
            result.conflicting_event_ids.append(event_id)
            if request.skip_conflicts:
                skip(event_id)
            else:
                skip(event_id, BatchItemFailure(
                    event_id=event_id,
                    reason='conflict',
                    message=f"Overlaps {', '.join(clashes)}",
                    conflicting_with=clashes,
                ))
            continue

        item = ScheduleItem(event_id=event.id, start=event.time_start, end=event.time_end, priority=priority)
        accepted.append(item)
        result.added_items.append(item)
        result.added_event_ids.append(event_id)

    result.added_count = len(result.added_event_ids)
    result.skipped_count = len(result.skipped_event_ids)
    result.conflict_count = len(result.conflicting_event_ids)

    logger.info(
        f"Batch add: {result.added_count} added, {result.skipped_count} skipped "
        f"({result.conflict_count} conflicts) of {len(request.event_ids)} requested"
    )
    return result
