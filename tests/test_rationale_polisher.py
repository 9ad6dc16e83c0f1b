"""Tests for services/rationale_polisher.py"""

import json
from types import SimpleNamespace

from conftest import at
from models.entities import CandidateSlot, Interval, RankedSuggestion, SuggestionResult
from models.errors import SuggestionStatus
from services.rationale_polisher import RationalePolisher


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _polisher(**kwargs):
    completions = FakeCompletions(**kwargs)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return RationalePolisher(client=client, model="test-model"), completions


def _result():
    slot = CandidateSlot(Interval(at("13:30"), at("15:00")), frozenset({"A", "B"}), True, True, "afternoon")
    return SuggestionResult(SuggestionStatus.OK, (
        RankedSuggestion(slot, 76.7, 1, "2 of 3 participants available (A, B)"),
        RankedSuggestion(slot, 61.7, 2, "1 of 3 participants available (A)"),
    ))


def test_rationales_replaced(make_context):
    polisher, completions = _polisher(content=json.dumps({"rationales": ["Great for A and B", " Works for A "]}))
    polished = polisher.polish(_result(), make_context())

    assert [s.rationale for s in polished] == ["Great for A and B", "Works for A"]
    assert [s.score for s in polished] == [76.7, 61.7]
    assert completions.calls[0]["model"] == "test-model"
    assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_wrong_count_keeps_original(make_context):
    polisher, _ = _polisher(content=json.dumps({"rationales": ["only one"]}))
    original = _result()
    assert polisher.polish(original, make_context()) is original


def test_invalid_json_keeps_original(make_context):
    polisher, _ = _polisher(content="not json")
    original = _result()
    assert polisher.polish(original, make_context()) is original


def test_api_error_keeps_original(make_context):
    polisher, _ = _polisher(error=RuntimeError("rate limited"))
    original = _result()
    assert polisher.polish(original, make_context()) is original


def test_empty_result_not_sent(make_context):
    polisher, completions = _polisher(content="{}")
    empty = SuggestionResult(SuggestionStatus.NO_SUGGESTIONS)
    assert polisher.polish(empty, make_context()) is empty
    assert completions.calls == []
