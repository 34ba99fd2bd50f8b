"""Tests for the streaming chat client."""

import json

import httpx
import pytest
from conftest import STREAM_URL, sse_frames, split_every

from focus_coach.config import Settings
from focus_coach.streaming.client import CoachStreamClient, CoachStreamError

FRAGMENTS = ["Great job", " finishing that!", " Try a 5 minute stretch."]


async def _collect(client, prompt="prompt"):
    return [chunk async for chunk in client.stream(prompt)]


async def test_yields_fragments_then_one_terminal(make_stream):
    stream = make_stream([sse_frames(*FRAGMENTS)])
    chunks = await _collect(stream.client)

    assert [c.chunk for c in chunks[:-1]] == FRAGMENTS
    assert all(not c.is_complete for c in chunks[:-1])
    terminal = chunks[-1]
    assert terminal.is_complete
    assert terminal.chunk == ""
    assert terminal.full_response.encouragement == "Great job finishing that!"
    assert "Try a 5 minute stretch." in terminal.full_response.suggestions
    assert sum(1 for c in chunks if c.is_complete) == 1


@pytest.mark.parametrize("size", [1, 2, 3, 5, 8, 13, 64, 4096])
async def test_split_boundary_invariance(make_stream, size):
    fragments = ["Focus ", "on one thing ", "at a time ☕", " café break."]
    stream = make_stream(split_every(sse_frames(*fragments), size))
    chunks = await _collect(stream.client)
    assert "".join(c.chunk for c in chunks if not c.is_complete) == "".join(fragments)
    assert chunks[-1].is_complete


async def test_malformed_frames_are_skipped(make_stream):
    body = (
        b"data: {not json\n"
        b'data: {"error": "upstream hiccup"}\n'
        b'data: {"model": "deepseek", "done": false}\n'
        b": keep-alive\n"
        b'data: {"content": "Stay"}\n'
        b'data: "with it."\n'
        b"data: [DONE]\n"
    )
    stream = make_stream([body])
    chunks = await _collect(stream.client)
    assert [c.chunk for c in chunks if not c.is_complete] == ["Stay", "with it."]
    assert chunks[-1].full_response.message == "Staywith it."


async def test_done_record_ends_stream(make_stream):
    body = b'data: {"content": "Hi there.", "done": false}\n\ndata: {"done": true, "model": "x"}\n\n'
    stream = make_stream([body, b'data: {"content": "ignored"}\n'])
    chunks = await _collect(stream.client)
    assert [c.chunk for c in chunks if not c.is_complete] == ["Hi there."]
    assert chunks[-1].full_response.message == "Hi there."


async def test_sentinel_without_trailing_newline(make_stream):
    stream = make_stream([b'data: {"content": "Last."}\ndata: [DONE]'])
    chunks = await _collect(stream.client)
    assert chunks[-1].is_complete
    assert chunks[-1].full_response.message == "Last."


async def test_missing_sentinel_is_a_failure(make_stream):
    stream = make_stream([sse_frames("partial", done=False)])
    received = []
    with pytest.raises(CoachStreamError):
        async for chunk in stream.client.stream("prompt"):
            received.append(chunk)
    assert [c.chunk for c in received] == ["partial"]
    assert not any(c.is_complete for c in received)


async def test_connection_drop_is_a_failure(make_stream):
    stream = make_stream([sse_frames("one"), sse_frames("two")], fail_after=1)
    with pytest.raises(CoachStreamError):
        await _collect(stream.client)


async def test_http_error_status(make_stream):
    stream = make_stream([b'{"error": "boom"}'], status=500)
    with pytest.raises(CoachStreamError, match="HTTP 500"):
        await _collect(stream.client)


async def test_connect_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = CoachStreamClient(url=STREAM_URL, http_client=http)
    with pytest.raises(CoachStreamError):
        await _collect(client)


async def test_request_body_and_headers(make_stream):
    stream = make_stream([sse_frames("ok")], api_key="secret")
    await _collect(stream.client, prompt="the prompt")

    assert len(stream.requests) == 1
    request = stream.requests[0]
    assert request.method == "POST"
    assert str(request.url) == STREAM_URL
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["message"] == "the prompt"
    assert body["context"] == "focus_coaching"
    assert body["model"] == "deepseek-reasoner"
    assert body["temperature"] == 0.8
    assert body["top_p"] == 0.95
    assert body["max_tokens"] == 1200
    assert body["detailLevel"] == "comprehensive"


async def test_abandoning_iteration_releases_transport(make_stream):
    stream = make_stream([sse_frames("first"), sse_frames("second")])
    chunks = stream.client.stream("prompt")
    first = await anext(chunks)
    assert first.chunk == "first"
    await chunks.aclose()
    assert stream.body.closed


async def test_each_call_issues_a_new_request(make_stream):
    stream = make_stream([sse_frames("ok")])
    await _collect(stream.client)
    await _collect(stream.client)
    assert len(stream.requests) == 2


def test_from_settings():
    settings = Settings(
        coach_stream_url="http://example.test/stream",
        coach_model="deepseek-chat",
        coach_api_key="k",
        max_tokens=300,
    )
    client = CoachStreamClient.from_settings(settings)
    assert client.url == "http://example.test/stream"
    assert client.model == "deepseek-chat"
    assert client.api_key == "k"
    assert client.max_tokens == 300
