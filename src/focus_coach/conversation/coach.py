"""Coaching orchestrator: one instance per user session."""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import aclosing

import structlog

from focus_coach.analysis.insights import generate_session_insights
from focus_coach.conversation.context_builder import build_context
from focus_coach.conversation.prompts import GENERIC_COACH_MESSAGE, fallback_response
from focus_coach.models.conversation import (
    AIResponse,
    ConversationContext,
    ConversationLogEntry,
    StreamChunk,
)
from focus_coach.models.session import SessionRecord
from focus_coach.models.user_profile import UserProfile
from focus_coach.storage.user_profile import RECENT_HISTORY_LIMIT, ProfileStore
from focus_coach.streaming.client import CoachStreamClient, CoachStreamError

logger = structlog.get_logger()


class CoachBusyError(RuntimeError):
    """A turn was started while the previous one is still streaming."""


class FocusCoach:
    """Ties prompt building, streaming, classification and the profile together.

    Turns are strictly sequential: the coach owns the in-flight flag so
    history entries are appended in order.

    Args:
        store: Profile and history store for this user.
        stream_client: Client for the coaching chat stream.
        history_window: Number of recent turns folded into each prompt.
    """

    def __init__(
        self,
        store: ProfileStore,
        stream_client: CoachStreamClient,
        history_window: int = RECENT_HISTORY_LIMIT,
    ):
        self.store = store
        self.stream_client = stream_client
        self.history_window = history_window
        self.profile: UserProfile = store.load()
        self._in_flight = False

    @property
    def user_id(self) -> str:
        return self.store.user_id

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def begin_turn(self) -> None:
        """Claim the coach for one turn before its stream is consumed.

        Pass ``claimed=True`` to the following ``ask_coach`` call, which
        releases the claim when it finishes.

        Raises:
            CoachBusyError: If another turn is still open.
        """
        if self._in_flight:
            raise CoachBusyError("A coaching turn is already in progress")
        self._in_flight = True

    async def ask_coach(
        self,
        context: ConversationContext,
        user_input: str | None = None,
        claimed: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        """Run one coaching turn, yielding chunks as they stream in.

        The last value is always a terminal chunk. Transport failures are
        replaced by a static reply for the session type. If the caller
        stops iterating early nothing is persisted for the turn.

        Raises:
            CoachBusyError: If another turn is still open and this one
                was not claimed with ``begin_turn``.
        """
        if not claimed:
            self.begin_turn()
        log = logger.bind(user_id=self.user_id, session_type=context.session_type.value)

        try:
            prompt = build_context(
                context,
                self.store.recent_history(self.history_window),
                self.profile,
                user_input,
            )
            log.info("coach_turn_started", prompt_chars=len(prompt))

            try:
                async with aclosing(self.stream_client.stream(prompt)) as chunks:
                    async for chunk in chunks:
                        if not chunk.is_complete:
                            yield chunk
                            continue
                        response = self._ensure_message(chunk.full_response)
                        self._commit(context, user_input, response)
                        log.info(
                            "coach_turn_completed",
                            questions=len(response.follow_up_questions),
                            suggestions=len(response.suggestions),
                        )
                        yield StreamChunk.terminal(response)
                        return
            except CoachStreamError as e:
                log.warning("coach_stream_failed", error=str(e))
            except Exception:
                log.exception("coach_turn_error")

            yield StreamChunk.terminal(fallback_response(context.session_type))
        finally:
            self._in_flight = False

    async def ask(
        self, context: ConversationContext, user_input: str | None = None
    ) -> AIResponse:
        """Run a turn to completion and return only the final reply."""
        response = fallback_response(context.session_type)
        async with aclosing(self.ask_coach(context, user_input)) as chunks:
            async for chunk in chunks:
                if chunk.is_complete and chunk.full_response is not None:
                    response = chunk.full_response
        return response

    def history(self) -> list[ConversationLogEntry]:
        return self.store.history()

    def get_insights(self, sessions: Sequence[SessionRecord]) -> list[str]:
        return generate_session_insights(sessions)

    def record_outcome(
        self, completed: bool, distractions: Iterable[str], time_of_day: str
    ) -> UserProfile:
        """Fold a finished session into the profile. Storage errors are logged."""
        try:
            self.profile = self.store.record_outcome(completed, distractions, time_of_day)
        except Exception:
            logger.exception("profile_update_failed", user_id=self.user_id)
        return self.profile

    @staticmethod
    def _ensure_message(response: AIResponse | None) -> AIResponse:
        if response is None:
            return AIResponse(message=GENERIC_COACH_MESSAGE)
        if not response.message.strip():
            return response.model_copy(update={"message": GENERIC_COACH_MESSAGE})
        return response

    def _commit(
        self,
        context: ConversationContext,
        user_input: str | None,
        response: AIResponse,
    ) -> None:
        entry = ConversationLogEntry(
            context=context, user_input=user_input, coach_message=response.message
        )
        try:
            self.store.append_history(entry)
        except Exception:
            logger.exception("history_append_failed", user_id=self.user_id)
