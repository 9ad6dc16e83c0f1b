"""Domain models for the meeting slot suggestion engine."""

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Literal, Optional

from models.errors import InputValidationError, SuggestionStatus


WEEKDAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


def day_span(day: date, start: time, end: time) -> Optional[tuple[datetime, datetime]]:
    """Concrete [start, end) datetimes for a clock range on a day; 00:00 as end means midnight."""
    start_dt = datetime.combine(day, start)
    if end == time(0, 0):
        end_dt = datetime.combine(day + timedelta(days=1), time.min)
    else:
        end_dt = datetime.combine(day, end)
    if start_dt >= end_dt:
        return None
    return start_dt, end_dt


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open [start, end) range of wall-clock time in the meeting timezone."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InputValidationError(
                f"interval start {self.start.isoformat()} is not before end {self.end.isoformat()}",
                field="interval",
            )

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    @property
    def date(self) -> date:
        return self.start.date()

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersection(self, other: "Interval") -> Optional["Interval"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start < end:
            return Interval(start, end)
        return None

    def clip(self, bounds: list["Interval"]) -> list["Interval"]:
        """Pieces of this interval that fall inside any of the bounds."""
        pieces = (self.intersection(bound) for bound in bounds)
        return [piece for piece in pieces if piece is not None]

    def midpoint(self) -> datetime:
        return self.start + (self.end - self.start) / 2


@dataclass(frozen=True)
class TimeBand:
    """A labeled preferred time-of-day range, e.g. afternoon 13:00-16:00."""
    label: str
    start: time
    end: time

    def on(self, day: date) -> Optional[Interval]:
        span = day_span(day, self.start, self.end)
        return Interval(*span) if span else None


@dataclass(frozen=True)
class WorkingHours:
    """Per-weekday bounds used when inverting imported busy blocks (0=Monday)."""
    hours: tuple[tuple[int, time, time], ...] = ()

    @classmethod
    def every_day(cls, start: time, end: time) -> "WorkingHours":
        return cls(tuple((weekday, start, end) for weekday in range(7)))

    @classmethod
    def weekdays(cls, start: time, end: time) -> "WorkingHours":
        return cls(tuple((weekday, start, end) for weekday in range(5)))

    def bounds_on(self, day: date) -> list[Interval]:
        bounds = []
        for weekday, start, end in self.hours:
            if weekday != day.weekday():
                continue
            span = day_span(day, start, end)
            if span:
                bounds.append(Interval(*span))
        return sorted(bounds)

    def bounds_for(self, start_date: date, end_date: date) -> list[Interval]:
        """Concrete working bounds for every day in [start_date, end_date]."""
        bounds = []
        current = start_date
        while current <= end_date:
            bounds.extend(self.bounds_on(current))
            current += timedelta(days=1)
        return bounds


@dataclass(frozen=True)
class MeetingContext:
    """Constraints and preferences of the meeting being planned."""
    duration_minutes: int
    date_start: date
    date_end: date
    total_participants: int
    preferred_days: Optional[frozenset[str]] = None  # None means every day
    time_bands: tuple[TimeBand, ...] = ()
    meeting_type: Literal["meals", "cafe", "sports", "others"] = "others"
    day_start: time = time(8, 0)
    day_end: time = time(22, 0)
    timezone: str = "UTC"
    meeting_id: Optional[str] = None

    def dates(self) -> list[date]:
        days = []
        current = self.date_start
        while current <= self.date_end:
            days.append(current)
            current += timedelta(days=1)
        return days

    def day_window(self, day: date) -> Optional[Interval]:
        span = day_span(day, self.day_start, self.day_end)
        return Interval(*span) if span else None

    def window(self) -> list[Interval]:
        """The date window as one interval per day."""
        return [w for w in (self.day_window(d) for d in self.dates()) if w is not None]

    @property
    def daily_window_minutes(self) -> int:
        span = day_span(self.date_start, self.day_start, self.day_end)
        if not span:
            return 0
        return int((span[1] - span[0]).total_seconds() // 60)

    def window_midpoint(self) -> Optional[datetime]:
        window = self.window()
        if not window:
            return None
        return window[0].start + (window[-1].end - window[0].start) / 2

    def prefers_day(self, day: date) -> bool:
        if self.preferred_days is None:
            return True
        return WEEKDAY_NAMES[day.weekday()] in self.preferred_days


@dataclass(frozen=True)
class AvailabilitySource:
    """Raw availability from one source for one participant.

    Manual sources carry free windows; calendar sources carry busy blocks.
    Windows are raw (start, end) pairs and are validated during normalization.
    """
    participant_id: str
    source_id: str
    kind: Literal["manual", "calendar"]
    windows: tuple[tuple[datetime, datetime], ...] = ()
    fetch_failed: bool = False


@dataclass(frozen=True)
class RejectedRecord:
    """A raw window excluded during normalization."""
    participant_id: str
    source_id: str
    start: datetime
    end: datetime
    reason: str


@dataclass(frozen=True)
class ParticipantAvailability:
    """Ordered, non-overlapping free intervals of one participant."""
    participant_id: str
    intervals: tuple[Interval, ...] = ()

    @property
    def total_minutes(self) -> int:
        return sum(i.minutes for i in self.intervals)


@dataclass(frozen=True)
class MatrixCell:
    """A maximal sub-interval with constant participant availability."""
    interval: Interval
    participants: frozenset[str]


@dataclass(frozen=True)
class AvailabilityMatrix:
    """Time-partitioned view of who is free across the date window."""
    cells: tuple[MatrixCell, ...]
    roster: tuple[str, ...]
    _starts: tuple[datetime, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_starts", tuple(c.interval.start for c in self.cells))

    def participants_at(self, instant: datetime) -> Optional[frozenset[str]]:
        """Participants free at an instant, or None when it lies outside the window."""
        idx = bisect_right(self._starts, instant) - 1
        if idx < 0:
            return None
        cell = self.cells[idx]
        if cell.interval.start <= instant < cell.interval.end:
            return cell.participants
        return None

    def cells_within(self, interval: Interval) -> list[MatrixCell]:
        idx = max(bisect_right(self._starts, interval.start) - 1, 0)
        found = []
        while idx < len(self.cells) and self.cells[idx].interval.start < interval.end:
            cell = self.cells[idx]
            if cell.interval.overlaps(interval):
                found.append(cell)
            idx += 1
        return found

    def available_throughout(self, interval: Interval) -> frozenset[str]:
        """Participants free during every instant of the interval."""
        cells = self.cells_within(interval)
        if not cells:
            return frozenset()
        if cells[0].interval.start > interval.start or cells[-1].interval.end < interval.end:
            return frozenset()
        available = cells[0].participants
        for previous, cell in zip(cells, cells[1:]):
            if previous.interval.end != cell.interval.start:
                return frozenset()
            available = available & cell.participants
        return available


@dataclass(frozen=True)
class CandidateSlot:
    """A fixed-length window considered as a meeting time."""
    interval: Interval
    available: frozenset[str]
    day_match: bool
    time_match: bool
    band_label: Optional[str] = None
    preferred: bool = True

    @property
    def available_count(self) -> int:
        return len(self.available)


@dataclass(frozen=True)
class RankedSuggestion:
    """A scored, ranked candidate slot with its rationale."""
    slot: CandidateSlot
    score: float
    rank: int
    rationale: str

    @property
    def available_count(self) -> int:
        return self.slot.available_count

    @property
    def date(self) -> date:
        return self.slot.interval.date

    @property
    def start_time(self) -> time:
        return self.slot.interval.start.time()

    @property
    def end_time(self) -> time:
        return self.slot.interval.end.time()


@dataclass(frozen=True)
class SuggestionResult:
    """Replacement set of suggestions for a meeting, tagged with its outcome."""
    status: SuggestionStatus
    suggestions: tuple[RankedSuggestion, ...] = ()
    reason: str = ""
    rejected: tuple[RejectedRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is SuggestionStatus.OK

    def __iter__(self):
        return iter(self.suggestions)

    def __len__(self) -> int:
        return len(self.suggestions)
