"""Client-side reassembly of the analysis frame stream into UI state.

Chunks may split a frame (or a multi-byte UTF-8 character) anywhere; the decoder buffers until a
frame terminator arrives. Folding is deterministic: replaying the same chunks always yields the
same state.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from typing import Any, Iterable

from pydantic import ValidationError

from foodguard.events import (
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StatusEvent,
    ThinkingEvent,
    ToolDataEvent,
    ToolEndEvent,
    ToolStartEvent,
    parse_event,
)
from foodguard.logging import get_logger
from foodguard.models.report import Report
from foodguard.streaming.framing import FRAME_PREFIX, FRAME_TERMINATOR

logger = get_logger(__name__)

SUCCESS_LINE = "[COMPLETE] ANALYSIS FINISHED SUCCESSFULLY"
CONNECTION_CLOSED_MESSAGE = "Connection closed before analysis completed"


@dataclass
class UIState:
    """What the dashboard shows for the current run."""

    progress_log: list[str] = field(default_factory=list)
    tool_cache: dict[str, Any] = field(default_factory=dict)
    report: Report | None = None
    error: str | None = None

    def reset(self) -> None:
        self.progress_log.clear()
        self.tool_cache.clear()
        self.report = None
        self.error = None

    @property
    def finished(self) -> bool:
        return self.report is not None or self.error is not None


class FrameDecoder:
    """Split a chunked text stream into complete frame bodies."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """Append a chunk and return the bodies of all frames it completed."""

        text = self._decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        self._buffer += text
        *fragments, self._buffer = self._buffer.split(FRAME_TERMINATOR)

        bodies: list[str] = []
        for fragment in fragments:
            if not fragment.startswith(FRAME_PREFIX):
                if fragment.strip():
                    logger.debug("Skipping non-data fragment", extra={"fragment": fragment[:80]})
                continue
            body = fragment[len(FRAME_PREFIX):]
            if body.strip():
                bodies.append(body)
        return bodies


class Reassembler:
    """Fold a frame stream into a :class:`UIState`.

    Args:
        state: State to fold into; a fresh one is created if omitted.
    """

    def __init__(self, state: UIState | None = None) -> None:
        self.state = state if state is not None else UIState()
        self._frames = FrameDecoder()
        self._closed = False

    @property
    def done(self) -> bool:
        return self._closed or self.state.finished

    def feed(self, chunk: bytes | str) -> list[ProgressEvent]:
        """Consume a chunk; returns the events it completed, in order."""

        events: list[ProgressEvent] = []
        for body in self._frames.feed(chunk):
            try:
                event = parse_event(body)
            except ValidationError as e:
                logger.warning("Skipping malformed frame", extra={"error": str(e), "frame": body[:200]})
                continue
            self.fold(event)
            events.append(event)
        return events

    def fold(self, event: ProgressEvent) -> None:
        """Apply one event to the state. Events after a terminal one are ignored."""

        if self.done:
            return
        state = self.state

        if isinstance(event, (StatusEvent, ToolStartEvent, ToolEndEvent, ThinkingEvent)):
            state.progress_log.append(event.message)
        elif isinstance(event, ToolDataEvent):
            state.tool_cache[event.tool_name] = event.data
        elif isinstance(event, CompleteEvent):
            state.report = event.report
            state.tool_cache.update(event.tool_data_snapshot)
            state.progress_log.append(SUCCESS_LINE)
        elif isinstance(event, ErrorEvent):
            state.error = event.message
            state.progress_log.append(f"[ERROR] {event.message}")

    def fail(self, message: str) -> None:
        """Record a transport failure. No effect once the run has finished."""

        if self.done:
            return
        self.state.error = message
        self.state.progress_log.append(message)
        self._closed = True

    def close(self) -> UIState:
        """Mark the channel closed and return the final state."""

        if not self.done:
            self.fail(CONNECTION_CLOSED_MESSAGE)
        self._closed = True
        return self.state


def replay(chunks: Iterable[bytes | str]) -> UIState:
    """Fold a complete chunk sequence into a fresh state."""

    reassembler = Reassembler()
    for chunk in chunks:
        reassembler.feed(chunk)
    return reassembler.close()
