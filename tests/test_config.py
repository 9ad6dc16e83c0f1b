"""Tests for services/config.py"""

import logging
from datetime import time

import pytest

from models.errors import InputValidationError
from services.config import Config, configure_logging

ENV_VARS = [
    "SCHEDULER_GRANULARITY_MINUTES", "SCHEDULER_TOP_N", "SCHEDULER_DAY_START", "SCHEDULER_DAY_END",
    "SCHEDULER_WORKING_START", "SCHEDULER_WORKING_END", "SCHEDULER_TIMEZONE", "CALENDAR_FETCH_TIMEOUT",
    "GOOGLE_CALENDAR_BASE_URL", "OPENAI_API_KEY", "OPENAI_MODEL", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config(load_env_file=False)
    assert config.scheduler.granularity_minutes == 15
    assert config.scheduler.top_n == 3
    assert config.scheduler.day_start == time(8, 0)
    assert config.scheduler.day_end == time(22, 0)
    assert config.scheduler.timezone == "UTC"
    assert config.calendar.fetch_timeout == 10.0
    assert not config.openai.enabled
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SCHEDULER_GRANULARITY_MINUTES", "30")
    monkeypatch.setenv("SCHEDULER_TOP_N", "5")
    monkeypatch.setenv("SCHEDULER_DAY_END", "24:00")
    monkeypatch.setenv("SCHEDULER_WORKING_START", "09:00")
    monkeypatch.setenv("SCHEDULER_WORKING_END", "18:00")
    monkeypatch.setenv("SCHEDULER_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("CALENDAR_FETCH_TIMEOUT", "2.5")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config(load_env_file=False)

    assert config.scheduler.granularity_minutes == 30
    assert config.scheduler.top_n == 5
    assert config.scheduler.day_end == time(0, 0)
    assert config.calendar.fetch_timeout == 2.5
    assert config.openai.enabled
    assert config.log_level == "DEBUG"
    summary = config.summary()
    assert summary["day_window"] == "08:00-00:00"
    assert summary["working_hours"] == "09:00-18:00"
    assert summary["timezone"] == "Asia/Tokyo"
    assert summary["rationale_polishing"] is True


def test_working_hours_cover_every_day(monkeypatch):
    monkeypatch.setenv("SCHEDULER_WORKING_START", "09:00")
    monkeypatch.setenv("SCHEDULER_WORKING_END", "17:00")
    hours = Config(load_env_file=False).scheduler.working_hours()
    assert len(hours.hours) == 7
    assert all((start, end) == (time(9, 0), time(17, 0)) for _, start, end in hours.hours)


@pytest.mark.parametrize("name, value", [
    ("SCHEDULER_GRANULARITY_MINUTES", "fifteen"),
    ("SCHEDULER_GRANULARITY_MINUTES", "0"),
    ("SCHEDULER_TOP_N", "-2"),
    ("SCHEDULER_DAY_START", "8am"),
    ("SCHEDULER_TIMEZONE", "Nowhere/Special"),
    ("CALENDAR_FETCH_TIMEOUT", "0"),
])
def test_invalid_values_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(InputValidationError) as exc:
        Config(load_env_file=False)
    assert exc.value.field == name


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(InputValidationError):
        configure_logging("chatty")


def test_configure_logging_accepts_level_names(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    configure_logging("warning")
    assert calls[0]["level"] == logging.WARNING
