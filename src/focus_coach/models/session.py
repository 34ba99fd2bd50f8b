"""Historical focus session records used for insight generation."""

from datetime import datetime

from pydantic import BaseModel, Field


class SessionRecord(BaseModel):
    """A finished or abandoned Pomodoro session."""

    start_time: datetime
    completed: bool
    duration_minutes: float | None = Field(default=None, ge=0)
    distractions: list[str] = Field(default_factory=list)
