"""Conversation data models for a single coaching turn."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SessionType(StrEnum):
    """Timer events that can trigger a coaching turn."""

    START = "start"
    PAUSE = "pause"
    DISTRACTION = "distraction"
    COMPLETION = "completion"
    BREAK = "break"
    REFLECTION = "reflection"


class TimeOfDay(StrEnum):
    """Coarse time-of-day buckets."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        """Bucket a 0-23 hour of day."""
        if hour < 12:
            return cls.MORNING
        elif hour < 17:
            return cls.AFTERNOON
        else:
            return cls.EVENING

    @classmethod
    def now(cls) -> "TimeOfDay":
        return cls.from_hour(datetime.now().hour)


class RecentPerformance(BaseModel):
    """Rolling performance summary supplied by the session layer."""

    model_config = ConfigDict(frozen=True)

    completion_rate: float = Field(ge=0.0, le=1.0)
    average_distractions: float = Field(ge=0.0)
    preferred_times: list[TimeOfDay] = Field(default_factory=list)


class ConversationContext(BaseModel):
    """Live session state captured just before a coaching turn."""

    model_config = ConfigDict(frozen=True)

    session_type: SessionType
    current_task: str | None = None
    time_elapsed: float | None = Field(default=None, ge=0)  # seconds
    total_duration: float | None = Field(default=None, ge=0)  # seconds
    distraction_count: int | None = Field(default=None, ge=0)
    streak_count: int | None = Field(default=None, ge=0)
    recent_performance: RecentPerformance | None = None
    time_of_day: TimeOfDay = Field(default_factory=TimeOfDay.now)


class ConversationLogEntry(BaseModel):
    """One completed turn in the persisted conversation log."""

    timestamp: datetime = Field(default_factory=datetime.now)
    context: ConversationContext
    user_input: str | None = None
    coach_message: str


class AIResponse(BaseModel):
    """Classified coach reply."""

    message: str
    follow_up_questions: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    insights: str | None = None
    encouragement: str | None = None


class StreamChunk(BaseModel):
    """A value yielded while a coaching turn streams in."""

    chunk: str
    is_complete: bool = False
    full_response: AIResponse | None = None

    @classmethod
    def terminal(cls, response: AIResponse) -> "StreamChunk":
        """Build the single closing chunk of a turn."""
        return cls(chunk="", is_complete=True, full_response=response)
