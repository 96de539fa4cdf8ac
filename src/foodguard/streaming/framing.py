"""Server-sent-event style framing of progress events."""

from __future__ import annotations

import json

from foodguard.events import ProgressEvent

FRAME_PREFIX = "data: "
FRAME_TERMINATOR = "\n\n"

SSE_HEADERS: dict[str, str] = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def encode_frame(event: ProgressEvent) -> bytes:
    """Encode one event as a ``data: <json>\\n\\n`` frame."""

    body = json.dumps(event.to_wire(), ensure_ascii=False)
    return f"{FRAME_PREFIX}{body}{FRAME_TERMINATOR}".encode("utf-8")
