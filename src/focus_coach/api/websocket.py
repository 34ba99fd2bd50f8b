"""Browser WebSocket handler streaming coaching turns to the UI."""

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from focus_coach.api.routes import (
    USER_ID_PATTERN,
    AskRequest,
    InsightsRequest,
    OutcomeRequest,
    get_coach,
)
from focus_coach.config import Settings
from focus_coach.conversation.coach import CoachBusyError, FocusCoach

logger = structlog.get_logger()


class CoachSession:
    """One browser connection bound to one user's coach.

    Args:
        settings: Application settings.
        browser_ws: WebSocket connection to the browser.
        user_id: Owner of the profile this session reads and updates.
    """

    def __init__(
        self,
        settings: Settings,
        browser_ws: WebSocket,
        user_id: str = "default",
        coach: FocusCoach | None = None,
    ):
        self.settings = settings
        self.browser_ws = browser_ws
        self.user_id = user_id
        self.coach = coach or get_coach(user_id, settings)

    async def ask(self, data: dict) -> None:
        request = AskRequest(**data)
        async for chunk in self.coach.ask_coach(request.context, request.user_input):
            if chunk.is_complete:
                await self._send_to_browser({
                    "type": "coach_response",
                    "response": chunk.full_response.model_dump(mode="json"),
                })
            else:
                await self._send_to_browser({"type": "coach_chunk", "chunk": chunk.chunk})

    async def record_outcome(self, data: dict) -> None:
        request = OutcomeRequest(**data)
        profile = self.coach.record_outcome(
            request.completed, request.distractions, request.time_of_day
        )
        await self._send_to_browser({"type": "profile", "profile": profile.model_dump(mode="json")})

    async def insights(self, data: dict) -> None:
        request = InsightsRequest(**data)
        await self._send_to_browser({
            "type": "insights",
            "insights": self.coach.get_insights(request.sessions),
        })

    async def _send_to_browser(self, data: dict) -> None:
        """Send a message to the browser WebSocket."""
        try:
            await self.browser_ws.send_json(data)
        except Exception:
            logger.warning("browser_send_failed")


async def handle_browser_websocket(websocket: WebSocket, settings: Settings) -> None:
    """Handle a browser WebSocket connection."""
    await websocket.accept()
    session: CoachSession | None = None

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.pop("type", "")

            if msg_type == "start_session":
                user_id = data.get("user_id") or "default"
                if not USER_ID_PATTERN.match(str(user_id)):
                    await websocket.send_json({"type": "error", "reason": "invalid_user_id"})
                    continue
                session = CoachSession(settings, websocket, user_id=user_id)
                logger.info("coach_session_started", user_id=user_id)
                await session._send_to_browser({
                    "type": "profile",
                    "profile": session.coach.profile.model_dump(mode="json"),
                })
                continue

            if session is None:
                await websocket.send_json({"type": "error", "reason": "no_session"})
                continue

            try:
                if msg_type == "ask":
                    await session.ask(data)
                elif msg_type == "outcome":
                    await session.record_outcome(data)
                elif msg_type == "insights":
                    await session.insights(data)
                else:
                    await websocket.send_json({"type": "error", "reason": "unknown_type"})
            except ValidationError as e:
                await websocket.send_json({
                    "type": "error",
                    "reason": "invalid_message",
                    "detail": e.errors(include_url=False, include_context=False),
                })
            except CoachBusyError:
                await websocket.send_json({"type": "error", "reason": "busy"})

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
