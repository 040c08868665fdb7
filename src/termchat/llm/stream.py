"""Server-sent-events consumer for streaming chat completions.

Hides the wire format of a streamed completion body:
- line framing across arbitrary read boundaries
- the ``data:`` marker and the ``[DONE]`` sentinel
- which JSON path carries the incremental content
"""

import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import httpx

from ..errors import NetworkError, ServiceError

DATA_MARKER = b"data:"
DONE_SENTINEL = b"[DONE]"

# Errors raised by the body iterator that end the stream abnormally
TRANSPORT_ERRORS = (httpx.TransportError, httpx.StreamError, OSError)


class StreamConsumer:
    """Turns a chunked completion body into ordered content fragments.

    Malformed lines (keep-alives, comments, non-JSON payloads) are skipped.
    A transport error ends the sequence with NetworkError; fragments already
    yielded stay valid.
    """

    def __init__(self, debug_callback: Any | None = None):
        self._debug_callback = debug_callback
        self.skipped_lines = 0

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback: callable(level, component, message)."""
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Stream", message)

    async def iter_lines(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        """Split a byte stream into lines, buffering partial lines.

        Args:
            chunks: Raw body chunks as delivered by the transport

        Yields:
            Complete lines without the trailing newline. A final line with no
            newline is yielded at end-of-stream.

        Raises:
            NetworkError: If reading the body fails
        """
        buffer = b""
        try:
            async for chunk in chunks:
                if isinstance(chunk, str):
                    chunk = chunk.encode("utf-8")
                buffer += chunk
                lines = buffer.split(b"\n")
                buffer = lines.pop()
                for line in lines:
                    yield line.rstrip(b"\r")
        except TRANSPORT_ERRORS as e:
            self._debug("error", f"Stream read failed: {e!r}")
            raise NetworkError(str(e) or type(e).__name__) from e

        if buffer:
            yield buffer.rstrip(b"\r")

    async def consume(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Yield content fragments in the order the server emitted them.

        Args:
            chunks: Raw body chunks of a streaming completion response

        Yields:
            Non-empty ``choices[0].delta.content`` values

        Raises:
            NetworkError: If reading the body fails mid-stream
            ServiceError: If the server streams an error object
        """
        self.skipped_lines = 0
        async for line in self.iter_lines(chunks):
            payload = line.strip()
            if not payload:
                continue
            if payload.startswith(DATA_MARKER):
                payload = payload[len(DATA_MARKER):].strip()
            if payload == DONE_SENTINEL:
                self._debug("debug", "Received end-of-stream sentinel")
                return

            fragment = self.parse_payload(payload)
            if fragment is None:
                self.skipped_lines += 1
                continue
            if fragment:
                yield fragment

    def parse_payload(self, payload: bytes) -> str | None:
        """Extract the content delta of one event payload.

        Returns:
            The delta text ("" when the event carries no content), or None if
            the payload is not a completion chunk at all

        Raises:
            ServiceError: If the payload is an error object
        """
        try:
            data = json.loads(payload)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None

        if "error" in data:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ServiceError(message)

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        delta = choices[0].get("delta") if isinstance(choices[0], dict) else None
        if not isinstance(delta, dict):
            return ""
        content = delta.get("content")
        return content if isinstance(content, str) else ""
