"""
Availability Matrix Builder

Sweeps every interval boundary across all participants and records, for each
maximal sub-interval of the date window, which participants are free.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from models.entities import (
    AvailabilityMatrix,
    Interval,
    MatrixCell,
    MeetingContext,
    ParticipantAvailability,
)

logger = logging.getLogger(__name__)


def build_availability_matrix(
    availabilities: Iterable[ParticipantAvailability],
    context: MeetingContext,
    roster: Optional[Iterable[str]] = None,
) -> AvailabilityMatrix:
    """
    Build the AvailabilityMatrix for the meeting's date window.

    Args:
        availabilities: normalized availability, one per participant
        context: meeting context providing the date window
        roster: every participant id, including those who submitted nothing

    Returns:
        AvailabilityMatrix whose cells partition the date window exactly
    """
    availabilities = list(availabilities)
    members = set(roster or [])
    members.update(a.participant_id for a in availabilities)

    # Boundary events: +1 at a start, -1 at an end
    events: dict = defaultdict(lambda: defaultdict(int))
    for availability in availabilities:
        for interval in availability.intervals:
            events[interval.start][availability.participant_id] += 1
            events[interval.end][availability.participant_id] -= 1

    window = context.window()
    breakpoints = set(events)
    for day in window:
        breakpoints.add(day.start)
        breakpoints.add(day.end)
    ordered = sorted(breakpoints)

    cells: list[MatrixCell] = []
    active: dict[str, int] = defaultdict(int)
    day_index = 0

    for current, following in zip(ordered, ordered[1:]):
        for participant_id, delta in events.get(current, {}).items():
            active[participant_id] += delta

        while day_index < len(window) and window[day_index].end <= current:
            day_index += 1
        if day_index >= len(window) or following <= window[day_index].start:
            continue

        free = frozenset(p for p, depth in active.items() if depth > 0)
        segment = Interval(current, following)
        if cells and cells[-1].interval.end == current and cells[-1].participants == free:
            cells[-1] = MatrixCell(Interval(cells[-1].interval.start, following), free)
        else:
            cells.append(MatrixCell(segment, free))

    logger.debug(
        "Availability matrix: %d cell(s) over %d day(s) for %d participant(s)",
        len(cells), len(window), len(members),
    )
    return AvailabilityMatrix(cells=tuple(cells), roster=tuple(sorted(members)))
