"""Qualitative insights over a user's historical focus sessions."""

from collections import Counter
from collections.abc import Sequence

from focus_coach.models.conversation import TimeOfDay
from focus_coach.models.session import SessionRecord

HIGH_COMPLETION_RATE = 0.8
LOW_COMPLETION_RATE = 0.5

DISCIPLINE_INSIGHT = (
    "You have excellent session completion discipline! Keep up the consistent focus."
)
EARLY_STOPPING_INSIGHT = (
    "I notice you're stopping sessions before the timer ends quite often. "
    "Let's explore what's breaking your focus."
)
BEST_TIME_INSIGHT = (
    "Your most productive time appears to be {time_of_day}. "
    "Consider scheduling important tasks then."
)


def completion_rate(sessions: Sequence[SessionRecord]) -> float:
    if not sessions:
        return 0.0
    return sum(1 for s in sessions if s.completed) / len(sessions)


def busiest_time_of_day(sessions: Sequence[SessionRecord]) -> TimeOfDay | None:
    """Bucket with the most sessions; ties go to the bucket seen first."""
    counts = Counter(TimeOfDay.from_hour(s.start_time.hour) for s in sessions)
    if not counts:
        return None
    return max(counts, key=counts.__getitem__)


def generate_session_insights(sessions: Sequence[SessionRecord]) -> list[str]:
    """Every applicable insight for the given sessions, in a fixed order."""
    if not sessions:
        return []

    insights = []
    rate = completion_rate(sessions)
    if rate > HIGH_COMPLETION_RATE:
        insights.append(DISCIPLINE_INSIGHT)
    if rate < LOW_COMPLETION_RATE:
        insights.append(EARLY_STOPPING_INSIGHT)

    best = busiest_time_of_day(sessions)
    if best is not None:
        insights.append(BEST_TIME_INSIGHT.format(time_of_day=best.value))
    return insights
