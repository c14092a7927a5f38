"""Incremental decoder for OpenAI-style Server-Sent-Events chat streams.

Turns raw byte chunks of ``data: {...}`` frames into the growing assistant
message. Chunk boundaries are arbitrary: a frame, a JSON object or even a
multi-byte UTF-8 character may be split across chunks.

Frames look like:
    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: [DONE]
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta_content(payload: object) -> str | None:
    """Return ``choices[0].delta.content`` from a parsed frame, or None."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamDecoder:
    """Buffers SSE bytes for a single chat exchange and accumulates the reply.

    One decoder per in-flight exchange; it performs no I/O.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.message = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[str]:
        """Consume one chunk and return the full message after each new delta.

        A ``[DONE]`` frame ends the stream; nothing after it is emitted and
        later chunks are ignored.
        """
        if self.done:
            return []

        self._buffer += self._utf8.decode(chunk)
        updates: list[str] = []

        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break

            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1 :]

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or line.strip() == "":
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX) :].strip()
            if payload == DONE_SENTINEL:
                self.done = True
                break

            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                # Incomplete frame: put it back and wait for more bytes
                self._buffer = line + "\n" + self._buffer
                break

            content = extract_delta_content(parsed)
            if content:
                self.message += content
                updates.append(self.message)

        return updates

    def finish(self) -> str:
        """Mark end of input; unterminated trailing content is discarded."""
        self._utf8.decode(b"", final=True)
        if self._buffer:
            logger.debug("Discarding %d unterminated bytes at end of stream", len(self._buffer))
        self._buffer = ""
        return self.message


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield the accumulated assistant message each time a delta arrives.

    The source is closed once the stream ends, including on ``[DONE]``.
    """
    decoder = StreamDecoder()
    try:
        async for chunk in chunks:
            for message in decoder.feed(chunk):
                yield message
            if decoder.done:
                break
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
    decoder.finish()
