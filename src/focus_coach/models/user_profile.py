"""User profile model for the coach's learned focus habits."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    focus_patterns: dict[str, Any] = Field(default_factory=dict)
    # The lists below behave as insertion-ordered sets: they only ever grow.
    common_distractions: list[str] = Field(default_factory=list)
    best_performance_times: list[str] = Field(default_factory=list)
    motivational_preferences: list[str] = Field(default_factory=list)
    personality_insights: list[str] = Field(default_factory=list)
