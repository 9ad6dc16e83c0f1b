"""
Candidate Slot Generator

Enumerates fixed-length windows aligned to a granularity, filtered by the
meeting's preferred days and time bands, and counts who is free for the
whole of each one.
"""

import logging
import math
from datetime import datetime, time, timedelta
from typing import Optional

from models.entities import AvailabilityMatrix, CandidateSlot, Interval, MeetingContext, TimeBand

logger = logging.getLogger(__name__)


def constraints_feasible(context: MeetingContext) -> bool:
    """True when at least one slot of the requested duration fits the date window."""
    if context.duration_minutes <= 0:
        return False
    if context.date_end < context.date_start:
        return False
    return context.duration_minutes <= context.daily_window_minutes


def _aligned_start(window_start: datetime, granularity: int) -> datetime:
    midnight = datetime.combine(window_start.date(), time.min)
    offset = (window_start - midnight).total_seconds() / 60
    steps = math.ceil(offset / granularity)
    return midnight + timedelta(minutes=steps * granularity)


def _matching_band(interval: Interval, bands: tuple[TimeBand, ...]) -> tuple[bool, bool, Optional[str]]:
    """(overlaps any band, inside a band, label of the containing band)."""
    overlaps = False
    for band in bands:
        band_interval = band.on(interval.date)
        if band_interval is None:
            continue
        if band_interval.contains(interval):
            return True, True, band.label
        if band_interval.overlaps(interval):
            overlaps = True
    return overlaps, False, None


def _enumerate(
    matrix: AvailabilityMatrix,
    context: MeetingContext,
    granularity: int,
    apply_preferences: bool,
) -> list[CandidateSlot]:
    duration = timedelta(minutes=context.duration_minutes)
    step = timedelta(minutes=granularity)
    slots = []

    for day in context.window():
        day_match = context.prefers_day(day.date)
        if apply_preferences and not day_match:
            continue

        start = _aligned_start(day.start, granularity)
        while start + duration <= day.end:
            interval = Interval(start, start + duration)
            start += step

            if context.time_bands:
                overlaps, time_match, band_label = _matching_band(interval, context.time_bands)
                if apply_preferences and not overlaps:
                    continue
            else:
                time_match, band_label = True, None

            slots.append(CandidateSlot(
                interval=interval,
                available=matrix.available_throughout(interval),
                day_match=day_match,
                time_match=time_match,
                band_label=band_label,
                preferred=apply_preferences,
            ))

    return slots


def generate_candidate_slots(
    matrix: AvailabilityMatrix,
    context: MeetingContext,
    granularity_minutes: int = 15,
) -> list[CandidateSlot]:
    """
    Generate candidate slots for the meeting.

    Preferred days and bands filter the enumeration; when no preferred slot
    has anyone available, the whole window is enumerated instead and the
    slots are marked as not preferred.

    Returns:
        list[CandidateSlot]: in chronological order
    """
    if granularity_minutes <= 0 or not constraints_feasible(context):
        return []

    slots = _enumerate(matrix, context, granularity_minutes, apply_preferences=True)
    if any(slot.available_count for slot in slots):
        return slots

    fallback = _enumerate(matrix, context, granularity_minutes, apply_preferences=False)
    if any(slot.available_count for slot in fallback):
        logger.info(
            "No preferred slot has availability; falling back to %d slot(s) across the full window",
            len(fallback),
        )
        return fallback
    return slots or fallback
