"""Translate reasoning-loop steps into progress events.

One encoder serves one run. It remembers which tool-call ids it has announced and the latest
result per tool name, and guarantees the event stream it yields ends with exactly one
terminal event.
"""

from __future__ import annotations

import contextlib
import json
from typing import Any, AsyncIterator

from foodguard.agent.steps import AIMessage, Step, ToolMessage
from foodguard.events import (
    FINALIZING_MESSAGE,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StatusEvent,
    ThinkingEvent,
    ToolDataEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from foodguard.logging import get_logger, tool_context
from foodguard.tools import TOOL_DISPLAY_NAMES, display_label

logger = get_logger(__name__)

NO_REPORT_MESSAGE = "Analysis ended without a report"

_UNPARSEABLE = object()


def _parse_tool_content(content: Any) -> Any:
    if isinstance(content, (bytes, bytearray)):
        content = content.decode("utf-8", errors="replace")
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return _UNPARSEABLE


class EventEncoder:
    """Per-run step-to-event translator.

    Args:
        labels: Tool name to display label table.
    """

    def __init__(self, labels: dict[str, str] | None = None) -> None:
        self._labels = dict(TOOL_DISPLAY_NAMES if labels is None else labels)
        self._seen_ids: set[str] = set()
        self._tool_cache: dict[str, Any] = {}

    @property
    def tool_cache(self) -> dict[str, Any]:
        """Latest parsed result per tool name."""
        return dict(self._tool_cache)

    def _label(self, tool_name: str) -> str:
        return display_label(tool_name, self._labels)

    def events_for(self, step: Step) -> list[ProgressEvent]:
        """Events produced by one step, in emission order."""

        events: list[ProgressEvent] = []
        msg = step.latest_message

        if isinstance(msg, AIMessage):
            for call in msg.tool_calls:
                if call.id in self._seen_ids:
                    continue
                self._seen_ids.add(call.id)
                label = self._label(call.name)
                events.append(
                    ToolStartEvent(
                        tool_id=call.id,
                        tool_name=call.name,
                        display_label=label,
                        message=f"[FETCHING] {label}",
                    )
                )

        if isinstance(msg, ToolMessage):
            data = _parse_tool_content(msg.content)
            if data is _UNPARSEABLE:
                with tool_context(msg.name):
                    logger.warning("Dropping unparseable tool result")
            else:
                self._tool_cache[msg.name] = data
                label = self._label(msg.name)
                events.append(ToolDataEvent(tool_name=msg.name, data=data))
                events.append(
                    ToolEndEvent(tool_name=msg.name, display_label=label, message=f"[COMPLETE] {label}")
                )

        if isinstance(msg, AIMessage) and msg.content.strip():
            events.append(ThinkingEvent())

        if step.structured_response is not None:
            events.append(StatusEvent(message=FINALIZING_MESSAGE))
            events.append(CompleteEvent(report=step.structured_response, tool_data_snapshot=self.tool_cache))

        return events

    async def encode(self, steps: AsyncIterator[Step]) -> AsyncIterator[ProgressEvent]:
        """Consume the step stream once and yield its progress events.

        The step iterator is closed when this generator finishes or is closed.
        """

        try:
            async with contextlib.aclosing(steps):
                async for step in steps:
                    for event in self.events_for(step):
                        yield event
                    if step.structured_response is not None:
                        return
        except Exception as e:
            logger.exception("Analysis run failed")
            yield ErrorEvent(message=str(e) or "Analysis failed")
            return

        logger.warning("Step stream ended without a structured response")
        yield ErrorEvent(message=NO_REPORT_MESSAGE)
