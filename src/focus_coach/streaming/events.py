"""Wire format for the coaching chat stream.

Requests are a single JSON body. Responses are newline-delimited frames of
the form ``data: <payload>``, where the payload is either the ``[DONE]``
sentinel or a JSON record carrying one text fragment.
"""

import codecs
from typing import Any

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

# Checked in this order; the first non-empty string wins.
FRAGMENT_KEYS = ("content", "response", "text")

DETAIL_LEVELS = ("concise", "balanced", "comprehensive")


def chat_stream_request(
    message: str,
    model: str,
    context: str = "focus_coaching",
    temperature: float = 0.8,
    top_p: float = 0.95,
    max_tokens: int = 1200,
    detail_level: str = "comprehensive",
) -> dict[str, Any]:
    """Build the request body for one coaching turn."""
    if detail_level not in DETAIL_LEVELS:
        detail_level = "comprehensive"
    return {
        "message": message,
        "context": context,
        "model": model,
        "temperature": temperature,
        "top_p": top_p,
        "max_tokens": max_tokens,
        "detailLevel": detail_level,
    }


def extract_fragment(record: Any) -> str | None:
    """Pull the text fragment out of a decoded frame record."""
    if isinstance(record, str):
        return record or None
    if not isinstance(record, dict):
        return None
    for key in FRAGMENT_KEYS:
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    # Raw OpenAI-compatible chunk passed straight through
    choices = record.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta") or {}
        content = delta.get("content") if isinstance(delta, dict) else None
        if isinstance(content, str) and content:
            return content
    return None


def is_end_record(record: Any) -> bool:
    """The relay server closes with ``{"done": true}`` instead of the sentinel."""
    return isinstance(record, dict) and record.get("done") is True


class FrameDecoder:
    """Incrementally turns transport reads into complete frame payloads.

    Reads may split a frame (or a multi-byte character) anywhere; the
    trailing partial line is carried over to the next ``feed`` call.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        self._buffer += self._utf8.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return self._payloads(lines)

    def flush(self) -> list[str]:
        """Drain whatever is left once the transport has closed."""
        self._buffer += self._utf8.decode(b"", final=True)
        lines, self._buffer = [self._buffer], ""
        return self._payloads(lines)

    @staticmethod
    def _payloads(lines: list[str]) -> list[str]:
        payloads = []
        for line in lines:
            line = line.rstrip("\r")
            if line.startswith(DATA_PREFIX):
                payloads.append(line[len(DATA_PREFIX):].strip())
        return payloads
