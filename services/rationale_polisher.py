"""Optional rewording of suggestion rationales with an OpenAI model.

Only the rationale text changes; ranks, scores and order are left alone, and
any failure returns the deterministic result untouched.
"""

import json
import logging
from dataclasses import replace
from typing import Optional

from openai import OpenAI

from models.entities import MeetingContext, SuggestionResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You rewrite short justifications for proposed group meeting times.
Keep every fact (participant counts, names, preferences) and keep each line under 120 characters.
Do not add facts. Return JSON: {"rationales": ["...", ...]} with exactly one entry per input, in order."""


class RationalePolisher:
    """Rewrites rationale strings in friendlier language."""

    def __init__(self, client: Optional[OpenAI] = None, api_key: Optional[str] = None, model: str = "gpt-4o-mini"):
        self.client = client or OpenAI(api_key=api_key)
        self.model = model

    def _request(self, result: SuggestionResult, context: MeetingContext) -> list:
        lines = [
            f"{s.rank}. {s.date:%A %Y-%m-%d} {s.start_time:%H:%M}-{s.end_time:%H:%M}: {s.rationale}"
            for s in result.suggestions
        ]
        user_prompt = (
            f"Meeting type: {context.meeting_type}, {context.duration_minutes} minutes.\n"
            + "\n".join(lines)
        )

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt}
            ],
            temperature=0.2,
            response_format={"type": "json_object"}
        )

        rationales = json.loads(response.choices[0].message.content).get("rationales")
        if (
            not isinstance(rationales, list)
            or len(rationales) != len(result.suggestions)
            or not all(isinstance(r, str) and r.strip() for r in rationales)
        ):
            raise ValueError(f"unexpected rationale payload: {rationales!r}")
        return [r.strip() for r in rationales]

    def polish(self, result: SuggestionResult, context: MeetingContext) -> SuggestionResult:
        if not result.suggestions:
            return result

        try:
            rationales = self._request(result, context)
        except Exception as e:
            logger.warning("Rationale polishing skipped: %s", e)
            return result

        return replace(
            result,
            suggestions=tuple(
                replace(suggestion, rationale=text)
                for suggestion, text in zip(result.suggestions, rationales)
            ),
        )
