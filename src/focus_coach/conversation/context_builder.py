"""Renders the coaching prompt from session state, profile and recent turns."""

from collections.abc import Sequence

from focus_coach.conversation.prompts import INSTRUCTIONS, ROLE_PREAMBLE
from focus_coach.models.conversation import ConversationContext, ConversationLogEntry
from focus_coach.models.user_profile import UserProfile

MAX_TRANSCRIPT_ENTRIES = 10


def _context_lines(context: ConversationContext) -> list[str]:
    lines = [
        f"- Session Type: {context.session_type.value}",
        f"- Time of Day: {context.time_of_day.value}",
    ]
    if context.current_task:
        lines.append(f"- Current Task: {context.current_task}")

    elapsed, total = context.time_elapsed, context.total_duration
    if elapsed is not None and total:
        progress = round(elapsed / total * 100)
        lines.append(
            f"- Session Progress: {progress}% "
            f"({round(elapsed / 60)} min of {round(total / 60)} min)"
        )

    if context.distraction_count is not None:
        lines.append(f"- Distractions This Session: {context.distraction_count}")
    if context.streak_count is not None:
        lines.append(f"- Current Streak: {context.streak_count} days")

    perf = context.recent_performance
    if perf is not None:
        lines.append(
            f"- Recent Performance: {round(perf.completion_rate * 100)}% completion rate, "
            f"avg {perf.average_distractions:g} distractions per session"
        )
        if perf.preferred_times:
            lines.append(
                f"- Preferred Times: {', '.join(t.value for t in perf.preferred_times)}"
            )
    return lines


def _profile_lines(profile: UserProfile | None) -> list[str]:
    if profile is None:
        return []
    lines = []
    if profile.common_distractions:
        lines.append(f"- Common Distractions: {', '.join(profile.common_distractions)}")
    if profile.best_performance_times:
        lines.append(
            f"- Best Performance Times: {', '.join(profile.best_performance_times)}"
        )
    return lines


def _transcript_lines(recent_log: Sequence[ConversationLogEntry]) -> list[str]:
    lines = []
    for index, entry in enumerate(recent_log[-MAX_TRANSCRIPT_ENTRIES:], start=1):
        lines.append(
            f'{index}. {entry.context.session_type.value}: coach said "{entry.coach_message}"'
        )
        if entry.user_input:
            lines.append(f'   user said "{entry.user_input}"')
    return lines


def build_context(
    context: ConversationContext,
    recent_log: Sequence[ConversationLogEntry],
    profile: UserProfile | None,
    user_input: str | None = None,
) -> str:
    """Build the full prompt for one coaching turn.

    Pure function: absent optional fields are left out entirely rather
    than rendered as placeholders.

    Args:
        context: Live session state for this turn.
        recent_log: Prior turns, oldest first. Only the last 10 are used.
        profile: Learned user profile, if loaded.
        user_input: What the user just typed, if anything.

    Returns:
        Prompt text ready to send to the model.
    """
    parts = [ROLE_PREAMBLE]

    parts.append("Current Context:\n" + "\n".join(_context_lines(context)))

    profile_lines = _profile_lines(profile)
    if profile_lines:
        parts.append("What You Know About This User:\n" + "\n".join(profile_lines))

    transcript = _transcript_lines(recent_log)
    if transcript:
        parts.append("Recent Conversation:\n" + "\n".join(transcript))

    if user_input:
        parts.append(f'User\'s Current Input: "{user_input}"')

    parts.append(INSTRUCTIONS)
    return "\n\n".join(parts)
