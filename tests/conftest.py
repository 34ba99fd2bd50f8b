"""Shared fixtures: a scripted chat-stream endpoint behind httpx.MockTransport."""

import json
from types import SimpleNamespace

import httpx
import pytest

from focus_coach.conversation.coach import FocusCoach
from focus_coach.storage.kv import MemoryStore
from focus_coach.storage.user_profile import ProfileStore
from focus_coach.streaming.client import CoachStreamClient

STREAM_URL = "http://coach.test/api/ai/chat-stream"


class ChunkedBody(httpx.AsyncByteStream):
    """Response body delivered in the exact byte chunks given."""

    def __init__(self, chunks: list[bytes], fail_after: int | None = None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.closed = False

    async def __aiter__(self):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise httpx.ReadError("connection dropped")
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def sse_frames(*fragments: str, done: bool = True) -> bytes:
    """Encode fragments as ``data:`` frames, optionally closed by the sentinel."""
    body = "".join(f"data: {json.dumps({'content': f})}\n\n" for f in fragments)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.fixture
def make_stream():
    """Build a CoachStreamClient whose endpoint replays the given chunks."""

    def _make(chunks, status: int = 200, fail_after: int | None = None, api_key=None):
        body = ChunkedBody(list(chunks), fail_after=fail_after)
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(status, stream=body)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = CoachStreamClient(url=STREAM_URL, api_key=api_key, http_client=http)
        return SimpleNamespace(client=client, body=body, requests=requests)

    return _make


@pytest.fixture
def memory_store():
    return ProfileStore(MemoryStore(), "alice")


@pytest.fixture
def make_coach(make_stream, memory_store):
    """FocusCoach over an in-memory store and a scripted stream."""

    def _make(chunks, **stream_kwargs):
        stream = make_stream(chunks, **stream_kwargs)
        coach = FocusCoach(memory_store, stream.client)
        return SimpleNamespace(coach=coach, stream=stream, store=memory_store)

    return _make
