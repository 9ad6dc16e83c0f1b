"""Parse-and-validate helpers for caller-supplied meeting and availability data.

Every helper either returns a fully valid value or raises
``InputValidationError`` naming the offending field. Nothing falls back to a
zero value.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Union

import pytz

from models.entities import WEEKDAY_NAMES, AvailabilitySource, MeetingContext, TimeBand
from models.errors import InputValidationError

# Named bands offered by the meeting form
NAMED_TIME_BANDS = {
    "morning": ("09:00", "12:00"),
    "lunch": ("11:00", "13:00"),
    "afternoon": ("13:00", "16:00"),
    "evening": ("17:00", "21:00"),
}

DAY_PRESETS = {
    "weekdays": WEEKDAY_NAMES[:5],
    "weekends": WEEKDAY_NAMES[5:],
}

MEETING_TYPES = ("meals", "cafe", "sports", "others")


def parse_date(value: Union[date, str], field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InputValidationError(f"expected YYYY-MM-DD, got {value!r}", field=field)
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise InputValidationError(f"expected YYYY-MM-DD, got {value!r}", field=field)


def parse_clock_time(value: Union[time, str], field: str = "time") -> time:
    """Parse HH:MM. 24:00 is accepted as an end-of-day marker and becomes 00:00."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise InputValidationError(f"expected HH:MM, got {value!r}", field=field)
    text = value.strip()
    if text == "24:00":
        return time(0, 0)
    try:
        return datetime.strptime(text, "%H:%M").time()
    except ValueError:
        raise InputValidationError(f"expected HH:MM, got {value!r}", field=field)


def parse_timezone(value: str, field: str = "timezone") -> str:
    try:
        return pytz.timezone(value).zone
    except (pytz.UnknownTimeZoneError, AttributeError):
        raise InputValidationError(f"unknown timezone {value!r}", field=field)


def parse_datetime(
    value: Union[datetime, str],
    timezone: str = "UTC",
    field: str = "datetime",
    align: Optional[str] = None,
) -> datetime:
    """Parse an ISO-8601 timestamp into naive wall-clock time in ``timezone``.

    Aware timestamps are converted; naive ones are taken to already be local.
    Timestamps off the whole minute are rejected unless ``align`` is "down"
    or "up", which moves them to the minute before or after.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InputValidationError(f"expected an ISO-8601 timestamp, got {value!r}", field=field)
    else:
        raise InputValidationError(f"expected an ISO-8601 timestamp, got {value!r}", field=field)

    if parsed.tzinfo is not None:
        tz = pytz.timezone(parse_timezone(timezone))
        parsed = parsed.astimezone(tz).replace(tzinfo=None)
    if parsed.second == 0 and parsed.microsecond == 0:
        return parsed
    minute = parsed.replace(second=0, microsecond=0)
    if align == "down":
        return minute
    if align == "up":
        return minute + timedelta(minutes=1)
    raise InputValidationError(f"expected a whole-minute timestamp, got {value!r}", field=field)


def _band_label(start: time) -> str:
    if start.hour < 12:
        return "morning"
    if start.hour < 17:
        return "afternoon"
    return "evening"


def parse_time_band(value: Union[TimeBand, str, dict], field: str = "preferredTimes") -> TimeBand:
    """Accept a named band ("afternoon"), a range ("13:00-16:00") or a mapping."""
    if isinstance(value, TimeBand):
        return value
    if isinstance(value, dict):
        start = parse_clock_time(value.get("start", ""), field=f"{field}.start")
        end = parse_clock_time(value.get("end", ""), field=f"{field}.end")
        label = value.get("label") or _band_label(start)
    elif isinstance(value, str):
        text = value.strip().lower()
        if text in NAMED_TIME_BANDS:
            start_text, end_text = NAMED_TIME_BANDS[text]
            start = parse_clock_time(start_text, field=field)
            end = parse_clock_time(end_text, field=field)
            label = text
        else:
            parts = text.split("-")
            if len(parts) != 2:
                raise InputValidationError(f"expected HH:MM-HH:MM or a band name, got {value!r}", field=field)
            start = parse_clock_time(parts[0], field=field)
            end = parse_clock_time(parts[1], field=field)
            label = _band_label(start)
    else:
        raise InputValidationError(f"unsupported time band {value!r}", field=field)

    if end != time(0, 0) and start >= end:
        raise InputValidationError(f"band start must be before end, got {value!r}", field=field)
    return TimeBand(label=label, start=start, end=end)


def parse_preferred_days(value: Union[None, str, Iterable[str]], field: str = "preferredDays") -> Optional[frozenset[str]]:
    """Return the preferred weekday names, or None for "all"."""
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    days = set()
    for item in value:
        name = str(item).strip().lower()
        if name == "all":
            return None
        if name in DAY_PRESETS:
            days.update(DAY_PRESETS[name])
        elif name in WEEKDAY_NAMES:
            days.add(name)
        else:
            raise InputValidationError(f"unknown day {item!r}", field=field)
    if not days or len(days) == len(WEEKDAY_NAMES):
        return None
    return frozenset(days)


def _pick(payload: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def parse_meeting_context(payload: dict, defaults: Optional[dict] = None) -> MeetingContext:
    """Build a MeetingContext from a request-style mapping.

    Accepts both camelCase (as sent by the web form) and snake_case keys.
    ``defaults`` may supply day_start, day_end and timezone.
    """
    defaults = defaults or {}

    duration = _pick(payload, "durationMinutes", "duration_minutes")
    if isinstance(duration, bool) or not isinstance(duration, (int, str)):
        raise InputValidationError(f"expected whole minutes, got {duration!r}", field="durationMinutes")
    try:
        duration = int(duration)
    except ValueError:
        raise InputValidationError(f"expected whole minutes, got {duration!r}", field="durationMinutes")

    participants = _pick(payload, "participantCount", "total_participants", default=0)
    try:
        participants = int(participants)
    except (TypeError, ValueError):
        raise InputValidationError(f"expected a count, got {participants!r}", field="participantCount")
    if participants < 0:
        raise InputValidationError("must not be negative", field="participantCount")

    meeting_type = str(_pick(payload, "type", "meeting_type", default="others")).lower()
    if meeting_type not in MEETING_TYPES:
        raise InputValidationError(f"unknown meeting type {meeting_type!r}", field="type")

    bands = tuple(
        parse_time_band(band)
        for band in _pick(payload, "preferredTimes", "time_bands", default=[])
    )

    return MeetingContext(
        duration_minutes=duration,
        date_start=parse_date(_pick(payload, "dateRangeStart", "date_start"), field="dateRangeStart"),
        date_end=parse_date(_pick(payload, "dateRangeEnd", "date_end"), field="dateRangeEnd"),
        total_participants=participants,
        preferred_days=parse_preferred_days(_pick(payload, "preferredDays", "preferred_days")),
        time_bands=bands,
        meeting_type=meeting_type,
        day_start=parse_clock_time(_pick(payload, "dayStart", "day_start", default=defaults.get("day_start", "08:00")), field="dayStart"),
        day_end=parse_clock_time(_pick(payload, "dayEnd", "day_end", default=defaults.get("day_end", "22:00")), field="dayEnd"),
        timezone=parse_timezone(_pick(payload, "timezone", default=defaults.get("timezone", "UTC"))),
        meeting_id=_pick(payload, "id", "meeting_id"),
    )


def parse_availability_source(
    participant_id: str,
    entries: Iterable[dict],
    kind: str = "manual",
    source_id: Optional[str] = None,
    timezone: str = "UTC",
) -> AvailabilitySource:
    """Turn submitted {"start", "end"} entries into a raw AvailabilitySource.

    Unparseable timestamps raise; inverted windows are kept so the normalizer
    can reject and report them per record.
    """
    if kind not in ("manual", "calendar"):
        raise InputValidationError(f"unknown source kind {kind!r}", field="kind")
    windows = []
    for index, entry in enumerate(entries):
        field = f"{participant_id}[{index}]"
        start = parse_datetime(entry.get("start"), timezone, field=f"{field}.start")
        end = parse_datetime(entry.get("end"), timezone, field=f"{field}.end")
        windows.append((start, end))
    return AvailabilitySource(
        participant_id=participant_id,
        source_id=source_id or kind,
        kind=kind,
        windows=tuple(windows),
    )
