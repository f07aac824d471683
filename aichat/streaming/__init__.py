"""
Decoding of the backend's line-delimited streaming protocol.
"""

from .models import StreamingStats, WireLine, WireLineKind
from .parser import LineDecoder, StreamingParser, parse_wire_line

__all__ = [
    "LineDecoder",
    "StreamingParser",
    "StreamingStats",
    "WireLine",
    "WireLineKind",
    "parse_wire_line",
]
