"""Error taxonomy and result statuses for suggestion generation."""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """How a failure should be handled by the caller."""
    INPUT_VALIDATION = "input_validation"
    TRANSIENT_COLLABORATOR = "transient_collaborator"


class SuggestionStatus(Enum):
    """Outcome tag attached to every suggestion result."""
    OK = "ok"
    NO_PARTICIPANTS = "no_participants"
    INFEASIBLE_CONSTRAINTS = "infeasible_constraints"
    NO_SUGGESTIONS = "no_suggestions"


class SchedulingError(Exception):
    """Base class for scheduling errors."""
    kind: FailureKind = FailureKind.INPUT_VALIDATION


class InputValidationError(SchedulingError, ValueError):
    """Caller-correctable problem with the supplied input."""
    kind = FailureKind.INPUT_VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class TransientCollaboratorError(SchedulingError):
    """A collaborator failed in a way the caller may retry."""
    kind = FailureKind.TRANSIENT_COLLABORATOR


class CalendarFetchError(TransientCollaboratorError):
    """Fetching free/busy data for one participant failed."""

    def __init__(self, participant_id: str, message: str):
        super().__init__(f"Calendar fetch failed for {participant_id}: {message}")
        self.participant_id = participant_id
