"""Core suggestion pipeline and the engine that runs it for stored meetings."""

import asyncio
import logging
import weakref
from typing import Any, Callable, Iterable, Optional

from models.entities import (
    AvailabilitySource,
    MeetingContext,
    ParticipantAvailability,
    RejectedRecord,
    SuggestionResult,
    WorkingHours,
)
from models.errors import InputValidationError, SuggestionStatus
from services.availability_matrix import build_availability_matrix
from services.calendar_service import GoogleFreeBusyClient, fetch_calendar_sources
from services.collaborators import (
    AvailabilityStore,
    CalendarFreeBusyProvider,
    MeetingContextProvider,
    SuggestionStore,
)
from services.config import Config, SchedulerConfig
from services.interval_normalizer import normalize_availability
from services.parsing import parse_meeting_context
from services.rank_selector import select_top
from services.rationale_polisher import RationalePolisher
from services.slot_generator import constraints_feasible, generate_candidate_slots

logger = logging.getLogger(__name__)


def _infeasible_reason(context: MeetingContext) -> str:
    if context.duration_minutes <= 0:
        return f"meeting duration must be positive, got {context.duration_minutes} minutes"
    if context.date_end < context.date_start:
        return f"date range ends ({context.date_end}) before it starts ({context.date_start})"
    return (
        f"a {context.duration_minutes}-minute meeting does not fit in the "
        f"{context.daily_window_minutes}-minute daily window"
    )


def generate_suggestions(
    context: MeetingContext,
    availabilities: Iterable[ParticipantAvailability],
    roster: Optional[Iterable[str]] = None,
    *,
    granularity_minutes: int = 15,
    top_n: int = 3,
    rejected: Iterable[RejectedRecord] = (),
) -> SuggestionResult:
    """
    Compute the ranked suggestion set for a meeting.

    Args:
        context: meeting constraints and preferences
        availabilities: normalized availability per participant
        roster: all participant ids, including those who submitted nothing
        granularity_minutes: alignment step of candidate start times
        top_n: maximum number of suggestions
        rejected: records dropped during normalization, passed through

    Returns:
        SuggestionResult: suggestions ordered by rank, tagged with a status
    """
    availabilities = list(availabilities)
    rejected = tuple(rejected)

    if context.total_participants <= 0 or not availabilities:
        logger.info("Meeting %s: no participants with availability", context.meeting_id)
        return SuggestionResult(
            status=SuggestionStatus.NO_PARTICIPANTS,
            reason="no participants have shared availability",
            rejected=rejected,
        )

    if not constraints_feasible(context):
        reason = _infeasible_reason(context)
        logger.info("Meeting %s: infeasible constraints: %s", context.meeting_id, reason)
        return SuggestionResult(
            status=SuggestionStatus.INFEASIBLE_CONSTRAINTS,
            reason=reason,
            rejected=rejected,
        )

    matrix = build_availability_matrix(availabilities, context, roster)
    slots = generate_candidate_slots(matrix, context, granularity_minutes)
    suggestions = select_top(slots, context, top_n=top_n, granularity_minutes=granularity_minutes)

    if not suggestions:
        logger.info("Meeting %s: %d candidate(s), none with availability", context.meeting_id, len(slots))
        return SuggestionResult(
            status=SuggestionStatus.NO_SUGGESTIONS,
            reason="no participant is free for any candidate slot",
            rejected=rejected,
        )

    logger.info(
        "Meeting %s: %d suggestion(s) from %d candidate(s), best score %.1f",
        context.meeting_id, len(suggestions), len(slots), suggestions[0].score,
    )
    return SuggestionResult(
        status=SuggestionStatus.OK,
        suggestions=tuple(suggestions),
        rejected=rejected,
    )


def generate_suggestions_from_sources(
    context: MeetingContext,
    sources: Iterable[AvailabilitySource],
    roster: Optional[Iterable[str]] = None,
    working_hours: Optional[WorkingHours] = None,
    *,
    granularity_minutes: int = 15,
    top_n: int = 3,
) -> SuggestionResult:
    """Normalize raw sources, then run generate_suggestions."""
    availabilities, rejected = normalize_availability(sources, context, working_hours)
    return generate_suggestions(
        context,
        availabilities,
        roster,
        granularity_minutes=granularity_minutes,
        top_n=top_n,
        rejected=rejected,
    )


class SchedulingEngine:
    """Regenerates and stores the suggestion set of a meeting."""

    def __init__(
        self,
        context_provider: MeetingContextProvider,
        availability_store: AvailabilityStore,
        suggestion_store: SuggestionStore,
        calendar_provider: Optional[CalendarFreeBusyProvider] = None,
        settings: Optional[SchedulerConfig] = None,
        fetch_timeout: float = 10.0,
        polisher: Optional[RationalePolisher] = None,
    ):
        """Initialize scheduling engine."""
        self.context_provider = context_provider
        self.availability_store = availability_store
        self.suggestion_store = suggestion_store
        self.calendar_provider = calendar_provider
        self.settings = settings or SchedulerConfig.from_env()
        self.fetch_timeout = fetch_timeout
        self.polisher = polisher
        # Entries vanish once no regeneration holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    def from_config(
        cls,
        config: Config,
        context_provider: MeetingContextProvider,
        availability_store: AvailabilityStore,
        suggestion_store: SuggestionStore,
        token_provider: Optional[Callable[[str], Optional[str]]] = None,
    ) -> "SchedulingEngine":
        """Wire the Google calendar client and rationale polisher from configuration."""
        calendar_provider = None
        if token_provider is not None:
            calendar_provider = GoogleFreeBusyClient(
                token_provider,
                timezone=config.scheduler.timezone,
                base_url=config.calendar.base_url,
                timeout=config.calendar.fetch_timeout,
            )
        polisher = None
        if config.openai.enabled:
            polisher = RationalePolisher(api_key=config.openai.api_key, model=config.openai.model)
        return cls(
            context_provider,
            availability_store,
            suggestion_store,
            calendar_provider=calendar_provider,
            settings=config.scheduler,
            fetch_timeout=config.calendar.fetch_timeout,
            polisher=polisher,
        )

    def _lock_for(self, meeting_id: str) -> asyncio.Lock:
        lock = self._locks.get(meeting_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[meeting_id] = lock
        return lock

    def context_from_payload(self, payload: dict[str, Any]) -> MeetingContext:
        """Parse a meeting payload, filling the daily window and timezone from settings."""
        return parse_meeting_context(payload, defaults={
            "day_start": self.settings.day_start,
            "day_end": self.settings.day_end,
            "timezone": self.settings.timezone,
        })

    async def regenerate(self, meeting_id: str) -> SuggestionResult:
        """
        Recompute suggestions for a meeting and replace the stored set.

        Regenerations of the same meeting run one at a time.

        Raises:
            InputValidationError: the meeting is unknown
        """
        lock = self._lock_for(meeting_id)
        async with lock:
            context = self.context_provider.get_context(meeting_id)
            if context is None:
                raise InputValidationError(f"unknown meeting {meeting_id!r}", field="meeting_id")

            roster = self.availability_store.get_roster(meeting_id)
            sources = list(self.availability_store.get_manual_sources(meeting_id))

            linked = self.availability_store.get_calendar_participants(meeting_id)
            if linked and self.calendar_provider is not None:
                sources.extend(await fetch_calendar_sources(
                    self.calendar_provider,
                    linked,
                    context.date_start,
                    context.date_end,
                    timeout=self.fetch_timeout,
                    timezone=context.timezone,
                ))

            result = generate_suggestions_from_sources(
                context,
                sources,
                roster,
                self.settings.working_hours(),
                granularity_minutes=self.settings.granularity_minutes,
                top_n=self.settings.top_n,
            )

            if self.polisher is not None and result.suggestions:
                result = await asyncio.to_thread(self.polisher.polish, result, context)

            self.suggestion_store.replace(meeting_id, result)
            return result
