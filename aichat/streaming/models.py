"""
Dataclasses for the backend's line-delimited streaming protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class WireLineKind(Enum):
    """Record kinds, keyed by the two-character line prefix."""
    TEXT = "0:"
    TOOL_CALL = "9:"
    TOOL_RESULT = "a:"
    UNKNOWN = ""


@dataclass(frozen=True)
class WireLine:
    """One decoded protocol record."""
    kind: WireLineKind
    payload: Any = None
    raw: str = ""


@dataclass
class StreamingStats:
    """Counters for a single response body."""
    bytes_received: int = 0
    lines: int = 0
    text_chunks: int = 0
    tool_calls: int = 0
    tool_results: int = 0
    ignored_lines: int = 0

    def record(self, line: WireLine) -> None:
        self.lines += 1
        if line.kind is WireLineKind.TEXT:
            self.text_chunks += 1
        elif line.kind is WireLineKind.TOOL_CALL:
            self.tool_calls += 1
        elif line.kind is WireLineKind.TOOL_RESULT:
            self.tool_results += 1
        else:
            self.ignored_lines += 1
