from datetime import date, datetime, time

import pytest

from models.entities import AvailabilitySource, MeetingContext, TimeBand

TUESDAY = date(2026, 10, 20)
SATURDAY = date(2026, 10, 24)

AFTERNOON = TimeBand("afternoon", time(13, 0), time(16, 0))


def at(hhmm: str, day: date = TUESDAY) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


@pytest.fixture
def make_context():
    def _make(**overrides) -> MeetingContext:
        values = dict(
            duration_minutes=90,
            date_start=TUESDAY,
            date_end=TUESDAY,
            total_participants=3,
            preferred_days=frozenset({"monday", "tuesday", "wednesday", "thursday", "friday"}),
            time_bands=(AFTERNOON,),
            meeting_id="mtg-1",
        )
        values.update(overrides)
        return MeetingContext(**values)
    return _make


@pytest.fixture
def manual():
    def _manual(participant_id: str, *ranges: str, day: date = TUESDAY) -> AvailabilitySource:
        windows = []
        for text in ranges:
            start, end = text.split("-")
            windows.append((at(start, day), at(end, day)))
        return AvailabilitySource(participant_id, "manual", "manual", tuple(windows))
    return _manual


@pytest.fixture
def busy():
    def _busy(participant_id: str, *ranges: str, day: date = TUESDAY, failed: bool = False) -> AvailabilitySource:
        windows = []
        for text in ranges:
            start, end = text.split("-")
            windows.append((at(start, day), at(end, day)))
        return AvailabilitySource(participant_id, "calendar", "calendar", tuple(windows), fetch_failed=failed)
    return _busy
