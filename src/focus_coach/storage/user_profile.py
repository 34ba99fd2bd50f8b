"""Coach profile and conversation-log persistence on top of a key-value store."""

from collections.abc import Iterable
from datetime import datetime

import structlog
from pydantic import ValidationError

from focus_coach.models.conversation import ConversationLogEntry
from focus_coach.models.user_profile import UserProfile
from focus_coach.storage.kv import KeyValueStore

logger = structlog.get_logger()

RECENT_HISTORY_LIMIT = 10


def profile_key(user_id: str) -> str:
    return f"coach_profile:{user_id}"


def history_key(user_id: str) -> str:
    return f"coach_history:{user_id}"


def _union(existing: list[str], new: Iterable[str]) -> list[str]:
    """Append unseen values, keeping first-seen order."""
    merged = list(existing)
    for value in new:
        if value and value not in merged:
            merged.append(value)
    return merged


class ProfileStore:
    """Per-user view over the coach's durable state.

    Args:
        kv: Backing key-value store.
        user_id: Owner of the profile and history.
    """

    def __init__(self, kv: KeyValueStore, user_id: str):
        self.kv = kv
        self.user_id = user_id
        self._profile: UserProfile | None = None

    @property
    def profile(self) -> UserProfile:
        if self._profile is None:
            return self.load()
        return self._profile

    def load(self) -> UserProfile:
        """Read the stored profile, falling back to an empty one."""
        try:
            profile = self._read_profile()
        except (OSError, ValueError, TypeError, ValidationError):
            logger.exception("profile_load_failed", user_id=self.user_id)
            profile = UserProfile(user_id=self.user_id)
        self._profile = profile
        return profile

    def _read_profile(self) -> UserProfile:
        data = self.kv.get(profile_key(self.user_id))
        return UserProfile(**data) if data else UserProfile(user_id=self.user_id)

    def save(self, profile: UserProfile) -> None:
        profile.updated_at = datetime.now()
        self.kv.set(profile_key(profile.user_id), profile.model_dump(mode="json"))
        self._profile = profile

    def _read_history(self) -> list[ConversationLogEntry]:
        raw = self.kv.get(history_key(self.user_id)) or []
        if not isinstance(raw, list):
            raise TypeError(f"Stored history for {self.user_id} is not a list")
        return [ConversationLogEntry(**item) for item in raw]

    def history(self) -> list[ConversationLogEntry]:
        """Full stored conversation log, oldest first."""
        try:
            return self._read_history()
        except (OSError, ValueError, TypeError, ValidationError):
            logger.exception("history_load_failed", user_id=self.user_id)
            return []

    def recent_history(self, limit: int = RECENT_HISTORY_LIMIT) -> list[ConversationLogEntry]:
        if limit <= 0:
            return []
        return self.history()[-limit:]

    def append_history(self, entry: ConversationLogEntry) -> None:
        """Append one turn. An invalid stored log is replaced by a fresh one."""
        try:
            entries = self._read_history()
        except (ValueError, TypeError, ValidationError):
            logger.exception("history_reset", user_id=self.user_id)
            entries = []
        entries.append(entry)
        self.kv.set(
            history_key(self.user_id), [e.model_dump(mode="json") for e in entries]
        )

    def record_outcome(
        self, completed: bool, distractions: Iterable[str], time_of_day: str
    ) -> UserProfile:
        """Fold a session outcome into the stored profile and persist it.

        The profile is re-read first so values written through another
        store instance survive. The cached profile only changes once the
        write succeeds.
        """
        try:
            current = self._read_profile()
        except (ValueError, TypeError, ValidationError):
            logger.exception("profile_load_failed", user_id=self.user_id)
            current = UserProfile(user_id=self.user_id)

        update = {"common_distractions": _union(current.common_distractions, distractions)}
        if completed:
            update["best_performance_times"] = _union(
                current.best_performance_times, [str(time_of_day)]
            )
        profile = current.model_copy(update=update)
        self.save(profile)
        logger.info(
            "profile_outcome_recorded",
            user_id=self.user_id,
            completed=completed,
            distractions=len(profile.common_distractions),
        )
        return profile
