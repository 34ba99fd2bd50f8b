"""Tests for session insight generation."""

from datetime import datetime

from focus_coach.analysis.insights import (
    DISCIPLINE_INSIGHT,
    EARLY_STOPPING_INSIGHT,
    busiest_time_of_day,
    completion_rate,
    generate_session_insights,
)
from focus_coach.models.conversation import TimeOfDay
from focus_coach.models.session import SessionRecord


def _session(hour: int, minute: int = 0, completed: bool = True) -> SessionRecord:
    return SessionRecord(start_time=datetime(2026, 3, 2, hour, minute), completed=completed)


def test_empty_input():
    assert generate_session_insights([]) == []
    assert completion_rate([]) == 0.0
    assert busiest_time_of_day([]) is None


def test_middle_completion_rate_reports_best_time_only():
    sessions = [_session(9), _session(9, 30), _session(15, completed=False)]
    insights = generate_session_insights(sessions)
    assert len(insights) == 1
    assert "morning" in insights[0]
    assert EARLY_STOPPING_INSIGHT not in insights
    assert DISCIPLINE_INSIGHT not in insights


def test_high_completion_rate():
    sessions = [_session(18) for _ in range(5)]
    insights = generate_session_insights(sessions)
    assert insights[0] == DISCIPLINE_INSIGHT
    assert "evening" in insights[1]


def test_low_completion_rate():
    sessions = [_session(13, completed=False), _session(14, completed=False), _session(8)]
    insights = generate_session_insights(sessions)
    assert insights[0] == EARLY_STOPPING_INSIGHT
    assert "afternoon" in insights[1]


def test_exact_thresholds_emit_neither_rate_insight():
    half = [_session(9), _session(10, completed=False)]
    assert completion_rate(half) == 0.5
    assert EARLY_STOPPING_INSIGHT not in generate_session_insights(half)

    four_of_five = [_session(9)] * 4 + [_session(9, completed=False)]
    assert DISCIPLINE_INSIGHT not in generate_session_insights(four_of_five)


def test_hour_buckets():
    assert TimeOfDay.from_hour(0) == TimeOfDay.MORNING
    assert TimeOfDay.from_hour(11) == TimeOfDay.MORNING
    assert TimeOfDay.from_hour(12) == TimeOfDay.AFTERNOON
    assert TimeOfDay.from_hour(16) == TimeOfDay.AFTERNOON
    assert TimeOfDay.from_hour(17) == TimeOfDay.EVENING
    assert TimeOfDay.from_hour(23) == TimeOfDay.EVENING


def test_tie_goes_to_first_seen_bucket():
    sessions = [_session(20), _session(8)]
    assert busiest_time_of_day(sessions) == TimeOfDay.EVENING
