"""
Interval Normalizer

Turns raw availability sources into one ParticipantAvailability per
participant, confined to the meeting's date window:
- manual sources are free windows, clipped and merged
- calendar sources are busy blocks, inverted inside working hours
- several sources for the same participant are intersected
"""

import logging
from collections import defaultdict
from datetime import time
from typing import Iterable, Optional

from models.entities import (
    AvailabilitySource,
    Interval,
    MeetingContext,
    ParticipantAvailability,
    RejectedRecord,
    WorkingHours,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKING_HOURS = WorkingHours.every_day(time(8, 0), time(22, 0))


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Merge overlapping or adjacent intervals into a sorted list."""
    ordered = sorted(intervals)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = Interval(last.start, current.end)
        else:
            merged.append(current)
    return merged


def intersect_interval_lists(first: list[Interval], second: list[Interval]) -> list[Interval]:
    """Intersection of two sorted, non-overlapping interval lists."""
    result = []
    i = j = 0
    while i < len(first) and j < len(second):
        overlap = first[i].intersection(second[j])
        if overlap:
            result.append(overlap)
        if first[i].end <= second[j].end:
            i += 1
        else:
            j += 1
    return result


def compute_free_intervals(busy: Iterable[Interval], bounds: Iterable[Interval]) -> list[Interval]:
    """
    Complement of the busy intervals inside the given bounds.

    Args:
        busy: busy intervals, in any order, possibly overlapping
        bounds: concrete working bounds (usually one per day)

    Returns:
        list: sorted free intervals; busy time outside the bounds is ignored
    """
    blocks = merge_intervals(busy)
    free = []
    i = 0

    for bound in merge_intervals(bounds):
        while i < len(blocks) and blocks[i].end <= bound.start:
            i += 1

        cursor = bound.start
        j = i
        while j < len(blocks) and blocks[j].start < bound.end:
            block = blocks[j]
            if block.start > cursor:
                free.append(Interval(cursor, block.start))
            if block.end > cursor:
                cursor = block.end
            j += 1

        if cursor < bound.end:
            free.append(Interval(cursor, bound.end))

    return free


def _reject(source: AvailabilitySource, start, end, reason: str) -> RejectedRecord:
    logger.warning(
        "Rejected %s window %s - %s for %s: %s",
        source.source_id, start, end, source.participant_id, reason,
    )
    return RejectedRecord(
        participant_id=source.participant_id,
        source_id=source.source_id,
        start=start,
        end=end,
        reason=reason,
    )


def _valid_windows(source: AvailabilitySource) -> tuple[list[Interval], list[RejectedRecord]]:
    intervals = []
    rejected = []
    for start, end in source.windows:
        if start >= end:
            rejected.append(_reject(source, start, end, "start is not before end"))
            continue
        intervals.append(Interval(start, end))
    return intervals, rejected


def source_free_intervals(
    source: AvailabilitySource,
    context: MeetingContext,
    working_hours: WorkingHours = DEFAULT_WORKING_HOURS,
) -> tuple[list[Interval], list[RejectedRecord]]:
    """Free intervals one source grants its participant within the date window."""
    window = context.window()
    intervals, rejected = _valid_windows(source)

    if source.kind == "manual":
        kept = []
        for interval in intervals:
            if interval.clip(window):
                kept.append(interval)
            else:
                rejected.append(_reject(
                    source, interval.start, interval.end, "outside the date window"
                ))
        return intersect_interval_lists(merge_intervals(kept), window), rejected

    if source.fetch_failed:
        logger.info(
            "No calendar data from %s for %s; treating as unavailable",
            source.source_id, source.participant_id,
        )
        return [], rejected

    bounds = working_hours.bounds_for(context.date_start, context.date_end)
    free = compute_free_intervals(intervals, bounds)
    return intersect_interval_lists(free, window), rejected


def normalize_availability(
    sources: Iterable[AvailabilitySource],
    context: MeetingContext,
    working_hours: Optional[WorkingHours] = None,
) -> tuple[list[ParticipantAvailability], list[RejectedRecord]]:
    """
    Build one ParticipantAvailability per participant that has any source.

    Returns:
        tuple: (availabilities sorted by participant id, rejected records)
    """
    working_hours = working_hours or DEFAULT_WORKING_HOURS
    per_participant: dict[str, list[list[Interval]]] = defaultdict(list)
    rejected: list[RejectedRecord] = []

    for source in sources:
        free, source_rejected = source_free_intervals(source, context, working_hours)
        per_participant[source.participant_id].append(free)
        rejected.extend(source_rejected)

    availabilities = []
    for participant_id in sorted(per_participant):
        source_lists = per_participant[participant_id]
        combined = source_lists[0]
        for other in source_lists[1:]:
            combined = intersect_interval_lists(combined, other)
        availabilities.append(ParticipantAvailability(
            participant_id=participant_id,
            intervals=tuple(merge_intervals(combined)),
        ))
        logger.debug(
            "%s: %d free interval(s) from %d source(s)",
            participant_id, len(combined), len(source_lists),
        )

    return availabilities, rejected
