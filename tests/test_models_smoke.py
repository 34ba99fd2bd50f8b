"""Smoke tests for the data models and fallback table."""

import pytest
from pydantic import ValidationError

from focus_coach.conversation.prompts import (
    FALLBACK_RESPONSES,
    GENERIC_COACH_MESSAGE,
    fallback_response,
)
from focus_coach.models.conversation import (
    AIResponse,
    ConversationContext,
    RecentPerformance,
    SessionType,
    StreamChunk,
    TimeOfDay,
)
from focus_coach.models.user_profile import UserProfile


class TestConversationContext:
    def test_defaults(self):
        context = ConversationContext(session_type="start")
        assert context.session_type == SessionType.START
        assert context.current_task is None
        assert isinstance(context.time_of_day, TimeOfDay)

    def test_is_immutable(self):
        context = ConversationContext(session_type="start")
        with pytest.raises(ValidationError):
            context.current_task = "changed"

    def test_rejects_negative_counts(self):
        with pytest.raises(ValidationError):
            ConversationContext(session_type="start", distraction_count=-1)
        with pytest.raises(ValidationError):
            ConversationContext(session_type="start", streak_count=-2)

    def test_rejects_unknown_session_type(self):
        with pytest.raises(ValidationError):
            ConversationContext(session_type="lunch")

    def test_completion_rate_bounds(self):
        with pytest.raises(ValidationError):
            RecentPerformance(completion_rate=1.5, average_distractions=0)


class TestResponses:
    def test_ai_response_defaults(self):
        response = AIResponse(message="hi")
        assert response.follow_up_questions == []
        assert response.suggestions == []
        assert response.insights is None
        assert response.encouragement is None

    def test_terminal_chunk(self):
        chunk = StreamChunk.terminal(AIResponse(message="done"))
        assert chunk.is_complete
        assert chunk.chunk == ""
        assert chunk.full_response.message == "done"


class TestFallbacks:
    def test_every_session_type_has_a_fallback(self):
        assert set(FALLBACK_RESPONSES) == set(SessionType)
        for session_type in SessionType:
            assert fallback_response(session_type).message

    def test_fallback_is_a_copy(self):
        response = fallback_response("start")
        response.follow_up_questions.append("mutated")
        assert "mutated" not in fallback_response("start").follow_up_questions

    def test_unknown_type_gets_generic(self):
        assert fallback_response("nap").message == GENERIC_COACH_MESSAGE


def test_user_profile_defaults():
    profile = UserProfile(user_id="u")
    assert profile.focus_patterns == {}
    assert profile.motivational_preferences == []
    assert profile.personality_insights == []
