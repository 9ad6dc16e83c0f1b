"""Rationale text and caller-facing serialization of suggestion results."""

from typing import Any, Dict, List, Optional

from models.entities import CandidateSlot, MeetingContext, RankedSuggestion, SuggestionResult
from models.errors import SuggestionStatus
from services.scoring_engine import domain_bonus

STATUS_MESSAGES = {
    SuggestionStatus.NO_PARTICIPANTS: (
        "No Participants Yet",
        "Nobody has shared their availability for this meeting yet.",
        ["Ask members to submit their free times", "Connect a calendar to import busy times"],
    ),
    SuggestionStatus.INFEASIBLE_CONSTRAINTS: (
        "Meeting Does Not Fit",
        "The meeting duration does not fit inside the selected dates and hours.",
        ["Shorten the meeting", "Widen the date range or daily hours"],
    ),
    SuggestionStatus.NO_SUGGESTIONS: (
        "No Available Times Found",
        "No time in the date range works for any participant.",
        ["Try adjusting the date range", "Ask members to update their availability"],
    ),
}


class ResponseFormatter:
    """Formats suggestion output in a consistent, structured manner."""

    @staticmethod
    def format_rationale(slot: CandidateSlot, context: MeetingContext) -> str:
        """Short justification, e.g. '2 of 3 participants available (a, b); matches preferred afternoon slot'."""
        total = max(context.total_participants, slot.available_count)
        names = ", ".join(sorted(slot.available))
        parts = [f"{slot.available_count} of {total} participants available ({names})"]

        if slot.time_match and slot.band_label:
            parts.append(f"matches preferred {slot.band_label} slot")
        if context.preferred_days is not None and slot.day_match:
            parts.append("on a preferred day")

        bonus = domain_bonus(slot, context)
        if bonus:
            parts.append(bonus.description)

        if not slot.preferred:
            parts.append("outside the preferred days/times")

        return "; ".join(parts)

    @staticmethod
    def suggestion_to_dict(suggestion: RankedSuggestion) -> Dict[str, Any]:
        """Flat, JSON-ready representation for storage or transport."""
        return {
            "rank": suggestion.rank,
            "date": suggestion.date.isoformat(),
            "start_time": suggestion.start_time.strftime("%H:%M"),
            "end_time": suggestion.end_time.strftime("%H:%M"),
            "score": suggestion.score,
            "available_count": suggestion.available_count,
            "available_participants": sorted(suggestion.slot.available),
            "preferred": suggestion.slot.preferred,
            "rationale": suggestion.rationale,
        }

    @staticmethod
    def result_to_dict(result: SuggestionResult) -> Dict[str, Any]:
        return {
            "status": result.status.value,
            "reason": result.reason,
            "suggestions": [ResponseFormatter.suggestion_to_dict(s) for s in result.suggestions],
            "rejected": [
                {
                    "participant_id": r.participant_id,
                    "source": r.source_id,
                    "start": r.start.isoformat(),
                    "end": r.end.isoformat(),
                    "reason": r.reason,
                }
                for r in result.rejected
            ],
        }

    @staticmethod
    def format_error(title: str, message: str, suggestions: Optional[List[str]] = None) -> str:
        """Format an error message."""
        lines = [
            f"**❌ {title}**",
            "",
            message
        ]

        if suggestions:
            lines.append("")
            lines.append("**Suggestions:**")
            for suggestion in suggestions:
                lines.append(f"• {suggestion}")

        return "\n".join(lines)

    @staticmethod
    def format_suggestions(result: SuggestionResult) -> str:
        """Human-readable summary of a result, best option first."""
        if not result.ok:
            title, message, hints = STATUS_MESSAGES[result.status]
            return ResponseFormatter.format_error(title, message, suggestions=hints)

        lines = [
            "**🎯 Suggested Meeting Times**",
            "",
        ]

        for suggestion in result.suggestions:
            interval = suggestion.slot.interval
            day_name = interval.start.strftime('%A')
            date_str = interval.start.strftime('%B %d, %Y')
            time_str = f"{interval.start:%H:%M} - {interval.end:%H:%M}"

            if suggestion.rank == 1:
                lines.append(f"⭐ **Option {suggestion.rank} (Best Match)**")
            else:
                lines.append(f"**Option {suggestion.rank}**")

            lines.append(f"   • Date: {day_name}, {date_str}")
            lines.append(f"   • Time: {time_str}")
            lines.append(f"   • Score: {suggestion.score:g}")
            lines.append(f"   • {suggestion.rationale}")
            lines.append("")

        return "\n".join(lines).rstrip()
