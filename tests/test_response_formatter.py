"""Tests for services/response_formatter.py"""

from datetime import datetime

from conftest import SATURDAY, TUESDAY, at
from models.entities import CandidateSlot, Interval, RankedSuggestion, RejectedRecord, SuggestionResult
from models.errors import SuggestionStatus
from services.response_formatter import ResponseFormatter


def _slot(start="13:30", end="15:00", available=("A", "B"), preferred=True, day=TUESDAY, **flags):
    return CandidateSlot(
        interval=Interval(at(start, day), at(end, day)),
        available=frozenset(available),
        day_match=flags.get("day_match", True),
        time_match=flags.get("time_match", True),
        band_label=flags.get("band_label", "afternoon"),
        preferred=preferred,
    )


class TestFormatRationale:
    def test_preferred_slot(self, make_context):
        text = ResponseFormatter.format_rationale(_slot(available=("B", "A")), make_context())
        assert text == "2 of 3 participants available (A, B); matches preferred afternoon slot; on a preferred day"

    def test_meal_bonus_mentioned(self, make_context):
        text = ResponseFormatter.format_rationale(_slot("12:00", "13:00"), make_context(meeting_type="meals"))
        assert text.endswith("good time for a meal")

    def test_fallback_slot_flagged(self, make_context):
        slot = _slot("10:00", "11:30", day=SATURDAY, preferred=False, day_match=False, time_match=False, band_label=None)
        text = ResponseFormatter.format_rationale(slot, make_context())
        assert text == "2 of 3 participants available (A, B); outside the preferred days/times"

    def test_no_day_preference_not_mentioned(self, make_context):
        text = ResponseFormatter.format_rationale(_slot(), make_context(preferred_days=None))
        assert "preferred day" not in text


class TestSerialization:
    def test_result_to_dict(self):
        suggestion = RankedSuggestion(_slot(), 76.7, 1, "because")
        rejected = RejectedRecord("D", "manual", at("11:00"), at("10:00"), "start is not before end")
        data = ResponseFormatter.result_to_dict(
            SuggestionResult(SuggestionStatus.OK, (suggestion,), rejected=(rejected,))
        )
        assert data["status"] == "ok"
        assert data["suggestions"] == [{
            "rank": 1,
            "date": "2026-10-20",
            "start_time": "13:30",
            "end_time": "15:00",
            "score": 76.7,
            "available_count": 2,
            "available_participants": ["A", "B"],
            "preferred": True,
            "rationale": "because",
        }]
        assert data["rejected"][0]["start"] == datetime(2026, 10, 20, 11, 0).isoformat()
        assert data["rejected"][0]["reason"] == "start is not before end"


class TestFormatSuggestions:
    def test_ok_result(self):
        result = SuggestionResult(SuggestionStatus.OK, (
            RankedSuggestion(_slot(), 76.7, 1, "first reason"),
            RankedSuggestion(_slot("12:00", "13:30"), 61.7, 2, "second reason"),
        ))
        text = ResponseFormatter.format_suggestions(result)
        assert "Option 1 (Best Match)" in text
        assert "Date: Tuesday, October 20, 2026" in text
        assert "Time: 13:30 - 15:00" in text
        assert "Score: 76.7" in text
        assert text.index("first reason") < text.index("second reason")

    def test_status_message(self):
        text = ResponseFormatter.format_suggestions(SuggestionResult(SuggestionStatus.NO_SUGGESTIONS))
        assert "No Available Times Found" in text
        assert "Suggestions:" in text
