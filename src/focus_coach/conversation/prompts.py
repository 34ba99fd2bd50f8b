"""Fixed prompt text and static fallback replies for the focus coach."""

from focus_coach.models.conversation import AIResponse, SessionType

ROLE_PREAMBLE = (
    "You are an intelligent AI Focus Coach helping a user with their Pomodoro session."
)

INSTRUCTIONS = """\
Instructions:
- You are FocusMate AI Coach. Give thorough, actionable guidance.
- Start with a one-line acknowledgement, then provide concrete next steps.
- Include a short plan with 3-6 bullet points, examples, and 1-2 alternatives.
- Briefly explain the reasoning behind the advice to build confidence.
- Aim for 150-300 words by default unless the user asks for shorter.
- If chatting during an ongoing session, reference today's goals and prior messages.

Detail level: comprehensive

Respond as the AI Focus Coach:"""

GENERIC_COACH_MESSAGE = (
    "I'm here to help you stay focused. How are you feeling about your current session?"
)

FALLBACK_RESPONSES: dict[SessionType, AIResponse] = {
    SessionType.START: AIResponse(
        message="Ready to dive deep into focused work? What's your main goal for this session?",
        follow_up_questions=[
            "What specific outcome do you want to achieve?",
            "Any particular challenges you're expecting?",
        ],
    ),
    SessionType.PAUSE: AIResponse(
        message="Taking a moment to pause is wise. What pulled your attention away?",
        follow_up_questions=[
            "Was it an internal thought or external distraction?",
            "How can we prevent this next time?",
        ],
    ),
    SessionType.DISTRACTION: AIResponse(
        message=(
            "I noticed you got distracted. That's completely normal! What was on your mind?"
        ),
        suggestions=[
            "Try the 2-minute rule: if it takes less than 2 minutes, do it now "
            "or write it down for later",
        ],
    ),
    SessionType.COMPLETION: AIResponse(
        message=(
            "Fantastic work completing that session! "
            "How do you feel about what you accomplished?"
        ),
        follow_up_questions=[
            "What worked well for your focus?",
            "What would you do differently next time?",
        ],
    ),
    SessionType.BREAK: AIResponse(
        message="Time for a well-deserved break! How was your focus during that session?",
        suggestions=["Try some light stretching or deep breathing to recharge"],
    ),
    SessionType.REFLECTION: AIResponse(
        message=(
            "Let's reflect on your focus journey. "
            "What patterns are you noticing in your work?"
        ),
        follow_up_questions=[
            "When do you feel most focused?",
            "What environments help you concentrate best?",
        ],
    ),
}


def fallback_response(session_type: SessionType | str | None) -> AIResponse:
    """Static reply used when the model cannot be reached."""
    try:
        response = FALLBACK_RESPONSES[SessionType(session_type)]
    except ValueError:
        return AIResponse(message=GENERIC_COACH_MESSAGE)
    return response.model_copy(deep=True)
