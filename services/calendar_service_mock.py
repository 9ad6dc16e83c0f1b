"""Mock free/busy provider for tests and local runs."""

import asyncio
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from models.errors import CalendarFetchError


class CalendarServiceMock:
    """In-memory free/busy provider with optional failures and delays."""

    def __init__(
        self,
        busy: Optional[Dict[str, List[Tuple[datetime, datetime]]]] = None,
        failing: Optional[set] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.busy = {pid: list(blocks) for pid, blocks in (busy or {}).items()}
        self.failing = set(failing or ())
        self.delays = dict(delays or {})
        self.requests: list[str] = []
        self.timezones: list[Optional[str]] = []

    def add_busy(self, participant_id: str, start: datetime, end: datetime):
        self.busy.setdefault(participant_id, []).append((start, end))

    def add_daily_standup(self, participant_id: str, start_date: date, end_date: date,
                          at: time = time(9, 0), minutes: int = 30):
        """Add a recurring weekday busy block, like a daily standup."""
        current = start_date
        while current <= end_date:
            if current.weekday() < 5:
                start = datetime.combine(current, at)
                self.add_busy(participant_id, start, start + timedelta(minutes=minutes))
            current += timedelta(days=1)

    async def fetch_busy(
        self, participant_id: str, date_start: date, date_end: date, timezone: Optional[str] = None
    ) -> List[Tuple[datetime, datetime]]:
        """Stored windows are already local, so ``timezone`` is only recorded."""
        self.requests.append(participant_id)
        self.timezones.append(timezone)
        delay = self.delays.get(participant_id)
        if delay:
            await asyncio.sleep(delay)
        if participant_id in self.failing:
            raise CalendarFetchError(participant_id, "calendar unavailable")

        window_start = datetime.combine(date_start, time.min)
        window_end = datetime.combine(date_end + timedelta(days=1), time.min)
        return [
            (start, end)
            for start, end in self.busy.get(participant_id, [])
            if start < window_end and end > window_start
        ]
