"""Server-side event pipeline."""

from __future__ import annotations

from foodguard.streaming.encoder import NO_REPORT_MESSAGE, EventEncoder
from foodguard.streaming.framing import FRAME_PREFIX, FRAME_TERMINATOR, SSE_HEADERS, encode_frame

__all__ = [
    "FRAME_PREFIX",
    "FRAME_TERMINATOR",
    "NO_REPORT_MESSAGE",
    "SSE_HEADERS",
    "EventEncoder",
    "encode_frame",
]
