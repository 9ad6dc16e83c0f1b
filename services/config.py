"""
Scheduler configuration.

Settings come from environment variables; a `.env` file in the working
directory is loaded first when present.
"""

import logging
import os
from dataclasses import dataclass
from datetime import time
from typing import Optional

from dotenv import load_dotenv

from models.entities import WorkingHours
from models.errors import InputValidationError
from services.parsing import parse_clock_time, parse_timezone

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InputValidationError(f"expected an integer, got {raw!r}", field=name)
    if value < minimum:
        raise InputValidationError(f"must be at least {minimum}, got {value}", field=name)
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InputValidationError(f"expected a number, got {raw!r}", field=name)
    if value <= 0:
        raise InputValidationError(f"must be positive, got {value}", field=name)
    return value


def _time_env(name: str, default: str) -> time:
    return parse_clock_time(os.getenv(name, default), field=name)


@dataclass
class SchedulerConfig:
    """Engine tuning: slot alignment, result size and the daily window."""
    granularity_minutes: int
    top_n: int
    day_start: time
    day_end: time
    working_start: time
    working_end: time
    timezone: str

    @classmethod
    def from_env(cls) -> 'SchedulerConfig':
        return cls(
            granularity_minutes=_int_env('SCHEDULER_GRANULARITY_MINUTES', 15),
            top_n=_int_env('SCHEDULER_TOP_N', 3),
            day_start=_time_env('SCHEDULER_DAY_START', '08:00'),
            day_end=_time_env('SCHEDULER_DAY_END', '22:00'),
            working_start=_time_env('SCHEDULER_WORKING_START', '08:00'),
            working_end=_time_env('SCHEDULER_WORKING_END', '22:00'),
            timezone=parse_timezone(os.getenv('SCHEDULER_TIMEZONE', 'UTC'), field='SCHEDULER_TIMEZONE'),
        )

    def working_hours(self) -> WorkingHours:
        return WorkingHours.every_day(self.working_start, self.working_end)


@dataclass
class CalendarConfig:
    """Google Calendar free/busy access."""
    base_url: str
    fetch_timeout: float

    @classmethod
    def from_env(cls) -> 'CalendarConfig':
        return cls(
            base_url=os.getenv('GOOGLE_CALENDAR_BASE_URL', 'https://www.googleapis.com/calendar/v3'),
            fetch_timeout=_float_env('CALENDAR_FETCH_TIMEOUT', 10.0),
        )


@dataclass
class OpenAIConfig:
    """Optional rationale polishing."""
    api_key: Optional[str]
    model: str

    @classmethod
    def from_env(cls) -> 'OpenAIConfig':
        return cls(
            api_key=os.getenv('OPENAI_API_KEY') or None,
            model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class Config:
    """Main configuration manager"""

    def __init__(self, load_env_file: bool = True):
        if load_env_file:
            load_dotenv()

        self.scheduler = SchedulerConfig.from_env()
        self.calendar = CalendarConfig.from_env()
        self.openai = OpenAIConfig.from_env()
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    def summary(self) -> dict:
        return {
            'granularity_minutes': self.scheduler.granularity_minutes,
            'top_n': self.scheduler.top_n,
            'day_window': f"{self.scheduler.day_start:%H:%M}-{self.scheduler.day_end:%H:%M}",
            'working_hours': f"{self.scheduler.working_start:%H:%M}-{self.scheduler.working_end:%H:%M}",
            'timezone': self.scheduler.timezone,
            'calendar_timeout': self.calendar.fetch_timeout,
            'rationale_polishing': self.openai.enabled,
        }


def configure_logging(level: str = 'INFO') -> None:
    """Set up root logging for command-line and service use."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        raise InputValidationError(f"unknown log level {level!r}", field='LOG_LEVEL')
    logging.basicConfig(
        level=numeric,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
