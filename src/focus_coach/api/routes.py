"""REST API routes for coaching turns, outcomes and insights."""

import re
from collections import OrderedDict

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from focus_coach.analysis.insights import generate_session_insights
from focus_coach.config import get_settings
from focus_coach.conversation.coach import CoachBusyError, FocusCoach
from focus_coach.models.conversation import ConversationContext, TimeOfDay
from focus_coach.models.session import SessionRecord
from focus_coach.storage.kv import JsonFileStore
from focus_coach.storage.user_profile import ProfileStore
from focus_coach.streaming.client import CoachStreamClient
from focus_coach.streaming.events import DATA_PREFIX, DONE_SENTINEL

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
MAX_CACHED_COACHES = 256
_coaches: OrderedDict[str, FocusCoach] = OrderedDict()


class AskRequest(BaseModel):
    context: ConversationContext
    user_input: str | None = None


class OutcomeRequest(BaseModel):
    completed: bool
    distractions: list[str] = Field(default_factory=list)
    time_of_day: TimeOfDay


class InsightsRequest(BaseModel):
    sessions: list[SessionRecord]


def validate_user_id(user_id: str) -> str:
    if not USER_ID_PATTERN.match(user_id):
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    return user_id


def build_coach(user_id: str, settings=None) -> FocusCoach:
    """Construct a coach backed by the on-disk profile store."""
    settings = settings or get_settings()
    store = ProfileStore(JsonFileStore(settings.profiles_dir), user_id)
    return FocusCoach(
        store,
        CoachStreamClient.from_settings(settings),
        history_window=settings.history_window,
    )


def get_coach(user_id: str, settings=None) -> FocusCoach:
    """Coach for ``user_id``, shared by the REST and WebSocket surfaces.

    Coaches are created on first use and kept in a least-recently-used
    registry of at most ``MAX_CACHED_COACHES`` entries. Coaches with a
    turn in flight are never evicted.
    """
    coach = _coaches.get(user_id)
    if coach is not None:
        _coaches.move_to_end(user_id)
        return coach

    coach = build_coach(user_id, settings)
    _coaches[user_id] = coach
    logger.info("coach_created", user_id=user_id)
    _evict_idle_coaches(keep=user_id)
    return coach


def _evict_idle_coaches(keep: str) -> None:
    for cached_id in list(_coaches):
        if len(_coaches) <= MAX_CACHED_COACHES:
            return
        if cached_id != keep and not _coaches[cached_id].in_flight:
            del _coaches[cached_id]
            logger.debug("coach_evicted", user_id=cached_id)


@router.post("/coach/{user_id}/ask")
async def ask_coach(user_id: str, body: AskRequest) -> StreamingResponse:
    """Stream a coaching turn back as server-sent events."""
    coach = get_coach(validate_user_id(user_id))
    try:
        coach.begin_turn()
    except CoachBusyError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    async def events():
        async for chunk in coach.ask_coach(body.context, body.user_input, claimed=True):
            yield f"{DATA_PREFIX}{chunk.model_dump_json()}\n\n"
        yield f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")


@router.post("/coach/{user_id}/outcome")
async def record_outcome(user_id: str, body: OutcomeRequest) -> dict:
    """Fold a finished session into the user's profile."""
    coach = get_coach(validate_user_id(user_id))
    profile = coach.record_outcome(body.completed, body.distractions, body.time_of_day)
    return profile.model_dump(mode="json")


@router.get("/coach/{user_id}/profile")
async def get_profile(user_id: str) -> dict:
    coach = get_coach(validate_user_id(user_id))
    return coach.profile.model_dump(mode="json")


@router.get("/coach/{user_id}/history")
async def get_history(user_id: str, limit: int | None = None) -> list[dict]:
    """Stored conversation log, oldest first; ``limit`` keeps the newest N."""
    coach = get_coach(validate_user_id(user_id))
    entries = coach.history()
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []
    return [e.model_dump(mode="json") for e in entries]


@router.post("/insights")
async def session_insights(body: InsightsRequest) -> list[str]:
    """Qualitative insights over historical sessions."""
    return generate_session_insights(body.sessions)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
