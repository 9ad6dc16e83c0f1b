"""Interfaces of the services the scheduling engine depends on, with in-memory versions."""

import threading
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Tuple

from models.entities import AvailabilitySource, MeetingContext, SuggestionResult


class CalendarFreeBusyProvider(Protocol):
    """Returns a participant's busy (start, end) windows for a date range, or raises.

    Windows are naive wall-clock times in ``timezone``, the meeting's IANA zone.
    """

    async def fetch_busy(
        self, participant_id: str, date_start: date, date_end: date, timezone: Optional[str] = None
    ) -> List[Tuple[datetime, datetime]]:
        ...


class AvailabilityStore(Protocol):
    """Roster and submitted availability for a meeting."""

    def get_roster(self, meeting_id: str) -> List[str]:
        ...

    def get_manual_sources(self, meeting_id: str) -> List[AvailabilitySource]:
        ...

    def get_calendar_participants(self, meeting_id: str) -> List[str]:
        ...


class MeetingContextProvider(Protocol):
    def get_context(self, meeting_id: str) -> Optional[MeetingContext]:
        ...


class SuggestionStore(Protocol):
    """Holds the current suggestion set per meeting; replace() swaps it atomically."""

    def replace(self, meeting_id: str, result: SuggestionResult) -> None:
        ...

    def current(self, meeting_id: str) -> Optional[SuggestionResult]:
        ...


class InMemoryAvailabilityStore:
    """Availability store kept in process memory."""

    def __init__(self):
        self._rosters: Dict[str, List[str]] = {}
        self._manual: Dict[str, Dict[str, AvailabilitySource]] = {}
        self._calendar_linked: Dict[str, set] = {}

    def add_participant(self, meeting_id: str, participant_id: str, calendar_linked: bool = False):
        roster = self._rosters.setdefault(meeting_id, [])
        if participant_id not in roster:
            roster.append(participant_id)
        if calendar_linked:
            self._calendar_linked.setdefault(meeting_id, set()).add(participant_id)

    def submit(self, meeting_id: str, source: AvailabilitySource):
        """Record a manual submission; resubmitting replaces the previous one."""
        self.add_participant(meeting_id, source.participant_id)
        self._manual.setdefault(meeting_id, {})[source.participant_id] = source

    def get_roster(self, meeting_id: str) -> List[str]:
        return list(self._rosters.get(meeting_id, []))

    def get_manual_sources(self, meeting_id: str) -> List[AvailabilitySource]:
        sources = self._manual.get(meeting_id, {})
        return [sources[pid] for pid in sorted(sources)]

    def get_calendar_participants(self, meeting_id: str) -> List[str]:
        return sorted(self._calendar_linked.get(meeting_id, set()))


class InMemoryMeetingContextProvider:
    def __init__(self, contexts: Optional[Dict[str, MeetingContext]] = None):
        self._contexts = dict(contexts or {})

    def put(self, meeting_id: str, context: MeetingContext):
        self._contexts[meeting_id] = context

    def get_context(self, meeting_id: str) -> Optional[MeetingContext]:
        return self._contexts.get(meeting_id)


class InMemorySuggestionStore:
    """Keeps only the latest result per meeting."""

    def __init__(self):
        self._results: Dict[str, SuggestionResult] = {}
        self._lock = threading.Lock()

    def replace(self, meeting_id: str, result: SuggestionResult) -> None:
        with self._lock:
            self._results[meeting_id] = result

    def current(self, meeting_id: str) -> Optional[SuggestionResult]:
        with self._lock:
            return self._results.get(meeting_id)
