"""Keyword heuristics that split a coach reply into structured fields."""

import re

from focus_coach.conversation.prompts import GENERIC_COACH_MESSAGE
from focus_coach.models.conversation import AIResponse

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

SUGGESTION_KEYWORDS = ("suggest", "try")
INSIGHT_KEYWORDS = ("insight", "pattern")
ENCOURAGEMENT_KEYWORDS = ("great", "excellent", "well done")


def _segments(text: str) -> list[str]:
    """Non-blank lines. Lines without a question mark are split at sentence ends."""
    segments = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if "?" in line:
            segments.append(line)
            continue
        segments.extend(s.strip() for s in _SENTENCE_BREAK.split(line) if s.strip())
    return segments


def classify(full_text: str) -> AIResponse:
    """Bucket each segment of the reply, first matching rule wins.

    Order: question mark, suggestion keywords, insight keywords,
    encouragement keywords, otherwise part of the main message. A line
    with a question mark is always kept whole as a follow-up question.
    """
    if not full_text or not full_text.strip():
        return AIResponse(message=GENERIC_COACH_MESSAGE)

    message_parts: list[str] = []
    questions: list[str] = []
    suggestions: list[str] = []
    insights: str | None = None
    encouragement: str | None = None

    for segment in _segments(full_text):
        lowered = segment.lower()
        if "?" in segment:
            questions.append(segment)
        elif any(k in lowered for k in SUGGESTION_KEYWORDS):
            suggestions.append(segment)
        elif any(k in lowered for k in INSIGHT_KEYWORDS):
            insights = segment
        elif any(k in lowered for k in ENCOURAGEMENT_KEYWORDS):
            encouragement = segment
        else:
            message_parts.append(segment)

    return AIResponse(
        # Fall back to the untouched reply when nothing landed in the message bucket
        message=" ".join(message_parts) or full_text,
        follow_up_questions=questions,
        suggestions=suggestions,
        insights=insights,
        encouragement=encouragement,
    )
