"""
Parser for the backend's line-delimited streaming protocol.

Each record is one ``\\n``-terminated line tagged by a two-character prefix:
``0:`` carries a JSON string of generated text, ``9:`` signals a tool call in
progress, and ``a:`` carries a JSON object whose ``result`` is retrieved
context. Any other line is ignored.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterator

import httpx
import structlog

from ..exceptions import DecodeError, EmptyBodyError
from .models import StreamingStats, WireLine, WireLineKind

logger = structlog.get_logger(__name__)

_KINDS_BY_PREFIX = {
    kind.value: kind for kind in WireLineKind if kind is not WireLineKind.UNKNOWN
}


class LineDecoder:
    """Turns raw body reads into complete text lines.

    UTF-8 sequences split across reads are held back until their remaining
    bytes arrive; text after the last newline is carried over to the next read.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        """Decode a read and return the lines it completed."""
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return lines

    def finish(self) -> str:
        """Flush the decoder and return the unterminated carry-over."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return remainder


def parse_wire_line(line: str) -> WireLine:
    """Classify a complete line and decode its payload.

    Raises:
        DecodeError: If a text or tool-result payload is malformed.
    """
    kind = _KINDS_BY_PREFIX.get(line[:2], WireLineKind.UNKNOWN)
    if kind in (WireLineKind.UNKNOWN, WireLineKind.TOOL_CALL):
        return WireLine(kind=kind, raw=line)

    content = line[2:].strip()
    try:
        decoded = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in '{kind.value}' line: {e}") from e

    if kind is WireLineKind.TEXT:
        if not isinstance(decoded, str):
            raise DecodeError(
                f"Text line must carry a JSON string, got {type(decoded).__name__}"
            )
        return WireLine(kind=kind, payload=decoded, raw=line)

    if not isinstance(decoded, dict) or "result" not in decoded:
        raise DecodeError("Tool result line must carry an object with 'result'")
    result = decoded["result"]
    if not isinstance(result, str):
        result = json.dumps(result, ensure_ascii=False)
    return WireLine(kind=kind, payload=result, raw=line)


class StreamingParser:
    """Decodes one streaming response body into wire records."""

    def __init__(self) -> None:
        self.stats = StreamingStats()

    async def parse_lines(self, response: httpx.Response) -> AsyncIterator[WireLine]:
        """
        Yield each complete record of the body in arrival order.

        Raises:
            EmptyBodyError: If the body finishes without a single byte.
            DecodeError: If a record's payload is malformed.
        """
        decoder = LineDecoder()

        async for data in response.aiter_bytes():
            self.stats.bytes_received += len(data)
            for line in decoder.feed(data):
                logger.debug("Stream line received", line=line)
                wire_line = parse_wire_line(line)
                self.stats.record(wire_line)
                yield wire_line

        if self.stats.bytes_received == 0:
            raise EmptyBodyError(
                f"API response is empty, status {response.status_code}",
                status_code=response.status_code,
            )

        remainder = decoder.finish()
        if remainder:
            logger.debug("Discarding unterminated stream line", line=remainder)

    def get_stats(self) -> dict[str, int]:
        """Get streaming statistics for monitoring."""
        return vars(self.stats).copy()
