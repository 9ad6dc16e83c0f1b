"""Tests for models/entities.py"""

from datetime import time, timedelta

import pytest

from conftest import TUESDAY, at
from models.entities import Interval, TimeBand, WorkingHours
from models.errors import InputValidationError


class TestInterval:
    def test_inverted_interval_rejected(self):
        with pytest.raises(InputValidationError):
            Interval(at("10:00"), at("09:00"))
        with pytest.raises(InputValidationError):
            Interval(at("10:00"), at("10:00"))

    def test_half_open_overlap(self):
        morning = Interval(at("09:00"), at("10:00"))
        assert not morning.overlaps(Interval(at("10:00"), at("11:00")))
        assert morning.overlaps(Interval(at("09:59"), at("11:00")))
        assert morning.intersection(Interval(at("10:00"), at("11:00"))) is None

    def test_clip_to_bounds(self):
        interval = Interval(at("07:00"), at("23:00"))
        bounds = [Interval(at("08:00"), at("12:00")), Interval(at("13:00"), at("22:00"))]
        assert interval.clip(bounds) == bounds
        assert Interval(at("05:00"), at("06:00")).clip(bounds) == []

    def test_minutes_and_midpoint(self):
        interval = Interval(at("13:30"), at("15:00"))
        assert interval.minutes == 90
        assert interval.midpoint() == at("14:15")


class TestMeetingContext:
    def test_window_per_day(self, make_context):
        context = make_context(date_end=TUESDAY + timedelta(days=2))
        window = context.window()
        assert len(window) == 3
        assert window[0] == Interval(at("08:00"), at("22:00"))
        assert context.daily_window_minutes == 14 * 60

    def test_midnight_day_end(self, make_context):
        context = make_context(day_start=time(18, 0), day_end=time(0, 0))
        assert context.window() == [Interval(at("18:00"), at("00:00", TUESDAY + timedelta(days=1)))]
        assert context.daily_window_minutes == 360

    def test_prefers_day(self, make_context):
        assert make_context().prefers_day(TUESDAY)
        assert not make_context().prefers_day(TUESDAY + timedelta(days=4))
        assert make_context(preferred_days=None).prefers_day(TUESDAY + timedelta(days=4))


def test_time_band_on_day():
    band = TimeBand("evening", time(20, 0), time(0, 0))
    assert band.on(TUESDAY) == Interval(at("20:00"), at("00:00", TUESDAY + timedelta(days=1)))


def test_working_hours_weekdays_only():
    hours = WorkingHours.weekdays(time(9, 0), time(17, 0))
    assert hours.bounds_on(TUESDAY) == [Interval(at("09:00"), at("17:00"))]
    assert hours.bounds_on(TUESDAY + timedelta(days=4)) == []
    assert len(hours.bounds_for(TUESDAY, TUESDAY + timedelta(days=6))) == 5
