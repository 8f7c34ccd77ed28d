"""
Conflict detection for schedule items.

A conflict is any pair of items whose [start, end) intervals share at least
one whole minute. Items without a start or an end never conflict.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..schemas import ScheduleItem, TimeConflict
from .geo import overlap_minutes

logger = logging.getLogger(__name__)


def _has_times(item: ScheduleItem) -> bool:
    return item.start is not None and item.end is not None


def detect_conflicts(items: Sequence[ScheduleItem]) -> List[TimeConflict]:
    """
    Pairwise scan over the items, reporting each overlapping pair once
    in input order (item1 comes before item2).
    """
    conflicts: List[TimeConflict] = []

    for i in range(len(items)):
        first = items[i]
        if not _has_times(first):
            continue
        for j in range(i + 1, len(items)):
            second = items[j]
            if not _has_times(second):
                continue

            minutes = overlap_minutes(first.start, first.end, second.start, second.end)
            if minutes > 0:
                conflicts.append(TimeConflict(item1=first, item2=second, overlap_minutes=minutes))

    if conflicts:
        logger.debug(f"Detected {len(conflicts)} conflicts among {len(items)} items")
    return conflicts


def conflicting_ids(
    start: Optional[datetime],
    end: Optional[datetime],
    items: Sequence[ScheduleItem],
    exclude_event_id: Optional[str] = None,
) -> List[str]:
    """Event IDs of the items that overlap [start, end)"""
    if start is None or end is None:
        return []

    ids = []
    for item in items:
        if item.event_id == exclude_event_id or not _has_times(item):
            continue
        if overlap_minutes(start, end, item.start, item.end) > 0:
            ids.append(item.event_id)
    return ids
