"""Streaming HTTP client for the coaching chat endpoint."""

import json
from collections.abc import AsyncIterator
from contextlib import aclosing

import httpx
import structlog

from focus_coach.conversation.classifier import classify
from focus_coach.models.conversation import StreamChunk
from focus_coach.streaming.events import (
    DONE_SENTINEL,
    FrameDecoder,
    chat_stream_request,
    extract_fragment,
    is_end_record,
)

logger = structlog.get_logger()

# Marker returned by _interpret for end-of-stream frames
_END = object()


class CoachStreamError(Exception):
    """The stream could not be opened or closed before end-of-stream."""


class CoachStreamClient:
    """Issues one request per turn and yields fragments as they arrive.

    Args:
        url: Chat stream endpoint.
        model: Model selector forwarded to the endpoint.
        api_key: Optional bearer token.
        http_client: Shared ``httpx.AsyncClient``; a private one is opened
            per turn when omitted.
    """

    def __init__(
        self,
        url: str,
        model: str = "deepseek-reasoner",
        context_label: str = "focus_coaching",
        temperature: float = 0.8,
        top_p: float = 0.95,
        max_tokens: int = 1200,
        detail_level: str = "comprehensive",
        api_key: str | None = None,
        timeout: httpx.Timeout | float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.model = model
        self.context_label = context_label
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens
        self.detail_level = detail_level
        self.api_key = api_key
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings, http_client: httpx.AsyncClient | None = None):
        timeout = httpx.Timeout(
            settings.request_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        )
        return cls(
            url=settings.coach_stream_url,
            model=settings.coach_model,
            context_label=settings.coach_context_label,
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_tokens=settings.max_tokens,
            detail_level=settings.detail_level,
            api_key=settings.coach_api_key,
            timeout=timeout,
            http_client=http_client,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/event-stream"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def stream(
        self, prompt: str, detail_level: str | None = None
    ) -> AsyncIterator[StreamChunk]:
        """Stream one coaching turn.

        Yields a non-terminal chunk per fragment and exactly one terminal
        chunk carrying the classified reply. Closing the iterator early
        releases the connection.

        Raises:
            CoachStreamError: On HTTP errors, transport failures, or when
                the body ends before the end-of-stream marker.
        """
        payload = chat_stream_request(
            message=prompt,
            model=self.model,
            context=self.context_label,
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            detail_level=detail_level or self.detail_level,
        )
        http = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        owns_client = self._http_client is None
        decoder = FrameDecoder()
        fragments: list[str] = []

        try:
            async with http.stream(
                "POST", self.url, json=payload, headers=self._headers()
            ) as response:
                if response.status_code >= 400:
                    raise CoachStreamError(
                        f"Coach endpoint returned HTTP {response.status_code}"
                    )
                logger.debug("coach_stream_opened", model=self.model)

                async with aclosing(response.aiter_bytes()) as reads:
                    while True:
                        data = await anext(reads, None)
                        frames = decoder.flush() if data is None else decoder.feed(data)
                        for frame in frames:
                            fragment = self._interpret(frame)
                            if fragment is _END:
                                full_text = "".join(fragments)
                                logger.info(
                                    "coach_stream_complete", characters=len(full_text)
                                )
                                yield StreamChunk.terminal(classify(full_text))
                                return
                            if fragment:
                                fragments.append(fragment)
                                yield StreamChunk(chunk=fragment)
                        if data is None:
                            break
        except httpx.HTTPError as e:
            raise CoachStreamError(f"Coach stream transport failed: {e}") from e
        finally:
            if owns_client:
                await http.aclose()

        raise CoachStreamError("Coach stream closed before end-of-stream marker")

    @staticmethod
    def _interpret(frame: str):
        """Map one frame payload to a fragment, ``_END`` or ``None`` (skip)."""
        if frame == DONE_SENTINEL:
            return _END
        try:
            record = json.loads(frame)
        except json.JSONDecodeError:
            logger.debug("stream_frame_skipped", reason="invalid_json", frame=frame[:80])
            return None
        if isinstance(record, dict) and record.get("error"):
            logger.warning("stream_error_frame", error=str(record["error"])[:200])
            return None
        if is_end_record(record):
            return _END
        fragment = extract_fragment(record)
        if fragment is None:
            logger.debug("stream_frame_skipped", reason="no_fragment")
        return fragment
