"""Rule-based scoring of candidate slots."""

from dataclasses import dataclass
from datetime import time
from typing import Optional

from models.entities import CandidateSlot, MeetingContext, TimeBand

BASE_WEIGHT = 70.0
DAY_BONUS = 15.0
TIME_BONUS = 15.0
MAX_DOMAIN_BONUS = 10.0
MAX_SCORE = 100.0


@dataclass(frozen=True)
class DomainBonus:
    """Extra points for slots that suit the kind of meeting."""
    meeting_type: str
    points: float
    description: str
    bands: tuple[TimeBand, ...] = ()
    weekdays: tuple[int, ...] = ()

    def applies(self, slot: CandidateSlot) -> bool:
        if self.weekdays and slot.interval.date.weekday() not in self.weekdays:
            return False
        if self.bands:
            return any(
                band_interval is not None and band_interval.contains(slot.interval)
                for band_interval in (band.on(slot.interval.date) for band in self.bands)
            )
        return True


DOMAIN_BONUSES = (
    DomainBonus(
        meeting_type="meals",
        points=10.0,
        description="good time for a meal",
        bands=(
            TimeBand("lunch", time(11, 0), time(14, 0)),
            TimeBand("dinner", time(17, 0), time(21, 0)),
        ),
    ),
    DomainBonus(
        meeting_type="cafe",
        points=5.0,
        description="good time for coffee",
        bands=(TimeBand("tea", time(14, 0), time(17, 0)),),
    ),
    DomainBonus(
        meeting_type="sports",
        points=5.0,
        description="on the weekend",
        weekdays=(5, 6),
    ),
)


def domain_bonus(slot: CandidateSlot, context: MeetingContext) -> Optional[DomainBonus]:
    """The first bonus rule matching the meeting type and slot, if any."""
    for bonus in DOMAIN_BONUSES:
        if bonus.meeting_type == context.meeting_type and bonus.applies(slot):
            return bonus
    return None


def base_score(available_count: int, total_participants: int) -> float:
    if total_participants <= 0:
        return 0.0
    ratio = available_count / total_participants
    return min(max(ratio, 0.0), 1.0) * BASE_WEIGHT


def score(slot: CandidateSlot, context: MeetingContext) -> float:
    """Score a candidate slot in [0, 100], rounded to one decimal."""
    total = base_score(slot.available_count, context.total_participants)
    if slot.day_match:
        total += DAY_BONUS
    if slot.time_match:
        total += TIME_BONUS

    bonus = domain_bonus(slot, context)
    if bonus:
        total += min(bonus.points, MAX_DOMAIN_BONUS)

    return round(min(total, MAX_SCORE), 1)
