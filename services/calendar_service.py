"""Calendar free/busy import with concurrent, failure-tolerant fetching."""

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List, Optional, Tuple

import httpx
import pytz

from models.entities import AvailabilitySource
from models.errors import CalendarFetchError, InputValidationError
from services.collaborators import CalendarFreeBusyProvider
from services.parsing import parse_datetime

logger = logging.getLogger(__name__)

BusyWindow = Tuple[datetime, datetime]


class GoogleFreeBusyClient:
    """Client for the Google Calendar freeBusy endpoint."""

    def __init__(
        self,
        token_provider: Callable[[str], Optional[str]],
        timezone: str = "UTC",
        base_url: str = "https://www.googleapis.com/calendar/v3",
        calendar_id: str = "primary",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            token_provider: returns a participant's OAuth access token, or None
            timezone: default zone busy blocks are converted into
            base_url: Calendar API base URL
            calendar_id: calendar queried for every participant
            timeout: per-request timeout in seconds
            transport: optional httpx transport (used by tests)
        """
        self.token_provider = token_provider
        self.timezone = timezone
        self.base_url = base_url.rstrip("/")
        self.calendar_id = calendar_id
        self.timeout = timeout
        self.transport = transport

    def _range(self, date_start: date, date_end: date, timezone: str) -> Tuple[str, str]:
        tz = pytz.timezone(timezone)
        start = tz.localize(datetime.combine(date_start, time.min))
        end = tz.localize(datetime.combine(date_end + timedelta(days=1), time.min))
        return (
            start.astimezone(pytz.UTC).isoformat().replace("+00:00", "Z"),
            end.astimezone(pytz.UTC).isoformat().replace("+00:00", "Z"),
        )

    async def fetch_busy(
        self,
        participant_id: str,
        date_start: date,
        date_end: date,
        timezone: Optional[str] = None,
    ) -> List[BusyWindow]:
        """Busy windows for a participant, as naive wall-clock times in ``timezone``.

        ``timezone`` defaults to the client's own zone.
        """
        timezone = timezone or self.timezone
        token = self.token_provider(participant_id)
        if not token:
            raise CalendarFetchError(participant_id, "no calendar access token")

        time_min, time_max = self._range(date_start, date_end, timezone)
        payload = {
            "timeMin": time_min,
            "timeMax": time_max,
            "timeZone": "UTC",
            "items": [{"id": self.calendar_id}],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/freeBusy",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            raise CalendarFetchError(participant_id, str(e)) from e
        except ValueError as e:
            raise CalendarFetchError(participant_id, "response was not valid JSON") from e

        calendar = result.get("calendars", {}).get(self.calendar_id)
        if calendar is None:
            raise CalendarFetchError(participant_id, f"calendar {self.calendar_id!r} missing from response")
        if calendar.get("errors"):
            reasons = ", ".join(err.get("reason", "unknown") for err in calendar["errors"])
            raise CalendarFetchError(participant_id, reasons)

        windows = []
        for block in calendar.get("busy", []):
            try:
                windows.append((
                    parse_datetime(block.get("start"), timezone, field="busy.start", align="down"),
                    parse_datetime(block.get("end"), timezone, field="busy.end", align="up"),
                ))
            except InputValidationError as e:
                raise CalendarFetchError(participant_id, str(e)) from e
        return windows


async def fetch_calendar_sources(
    provider: CalendarFreeBusyProvider,
    participant_ids: Iterable[str],
    date_start: date,
    date_end: date,
    timeout: float = 10.0,
    source_id: str = "calendar",
    timezone: Optional[str] = None,
) -> List[AvailabilitySource]:
    """
    Fetch busy windows for every participant concurrently.

    A participant whose fetch fails or exceeds ``timeout`` gets a source
    marked ``fetch_failed``; one failure never aborts the batch. Busy windows
    come back as wall-clock times in ``timezone`` when one is given.

    Returns:
        list: one calendar AvailabilitySource per participant, in input order
    """

    async def fetch_one(participant_id: str) -> AvailabilitySource:
        try:
            windows = await asyncio.wait_for(
                provider.fetch_busy(participant_id, date_start, date_end, timezone=timezone),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Calendar fetch for %s timed out after %.1fs", participant_id, timeout)
            return AvailabilitySource(participant_id, source_id, "calendar", fetch_failed=True)
        except Exception as e:
            logger.warning("Calendar fetch for %s failed: %s", participant_id, e)
            return AvailabilitySource(participant_id, source_id, "calendar", fetch_failed=True)

        logger.debug("Fetched %d busy window(s) for %s", len(windows), participant_id)
        return AvailabilitySource(participant_id, source_id, "calendar", tuple(windows))

    return list(await asyncio.gather(*(fetch_one(pid) for pid in participant_ids)))
