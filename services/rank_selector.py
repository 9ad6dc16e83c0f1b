"""
Rank Selector

Orders scored candidates with deterministic tie-breaks, collapses runs of
near-identical windows and keeps the top N as RankedSuggestions.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from models.entities import CandidateSlot, MeetingContext, RankedSuggestion
from services.response_formatter import ResponseFormatter
from services.scoring_engine import score

logger = logging.getLogger(__name__)


def _sort_key(slot: CandidateSlot, slot_score: float, midpoint: Optional[datetime]):
    if midpoint is None:
        distance = 0.0
    else:
        distance = abs((slot.interval.midpoint() - midpoint).total_seconds())
    return (-slot_score, -slot.available_count, slot.interval.start, distance)


def order_candidates(
    slots: Iterable[CandidateSlot],
    context: MeetingContext,
) -> list[tuple[float, CandidateSlot]]:
    """Score and order candidates: score, available count, start, distance to window midpoint."""
    midpoint = context.window_midpoint()
    scored = [(score(slot, context), slot) for slot in slots]
    scored.sort(key=lambda item: _sort_key(item[1], item[0], midpoint))
    return scored


def collapse_adjacent(
    scored: list[tuple[float, CandidateSlot]],
    granularity_minutes: int,
) -> list[tuple[float, CandidateSlot]]:
    """Drop candidates that start within one step of an equal-scored earlier one."""
    # Dropped slots still advance last_start, so a long equal-scored run
    # collapses to its first slot rather than one slot per step.
    step = timedelta(minutes=granularity_minutes)
    last_start: dict[float, datetime] = {}
    kept = []
    for slot_score, slot in scored:
        previous = last_start.get(slot_score)
        last_start[slot_score] = slot.interval.start
        if previous is not None and abs(slot.interval.start - previous) <= step:
            continue
        kept.append((slot_score, slot))
    return kept


def select_top(
    slots: Iterable[CandidateSlot],
    context: MeetingContext,
    top_n: int = 3,
    granularity_minutes: int = 15,
) -> list[RankedSuggestion]:
    """
    Rank candidates and return the best ``top_n`` suggestions.

    Candidates nobody can attend are never suggested.
    """
    if top_n <= 0:
        return []

    viable = [slot for slot in slots if slot.available_count > 0]
    ordered = collapse_adjacent(order_candidates(viable, context), granularity_minutes)
    logger.debug("%d viable candidate(s), %d after collapsing", len(viable), len(ordered))

    suggestions = []
    for rank, (slot_score, slot) in enumerate(ordered[:top_n], 1):
        suggestions.append(RankedSuggestion(
            slot=slot,
            score=slot_score,
            rank=rank,
            rationale=ResponseFormatter.format_rationale(slot, context),
        ))
    return suggestions
