"""Progress events streamed from an analysis run to the client.

A run produces an ordered sequence of events. Exactly one terminal event (``complete`` or
``error``) is emitted and it is always the last one. Events are serialized with camelCase keys
and discriminated by ``type``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from foodguard.models.report import Report


THINKING_MESSAGE = "[PROCESSING] ANALYZING DATA PATTERNS AND RISK FACTORS"
FINALIZING_MESSAGE = "[FINALIZING] GENERATING COMPREHENSIVE REPORT"


class _Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to JSON-compatible data with camelCase keys."""

        return self.model_dump(mode="json", by_alias=True)


class StatusEvent(_Event):
    type: Literal["status"] = "status"
    message: str


class ToolStartEvent(_Event):
    type: Literal["tool_start"] = "tool_start"
    tool_id: str
    tool_name: str
    display_label: str
    message: str


class ToolDataEvent(_Event):
    type: Literal["tool_data"] = "tool_data"
    tool_name: str
    data: Any = None


class ToolEndEvent(_Event):
    type: Literal["tool_end"] = "tool_end"
    tool_name: str
    display_label: str
    message: str


class ThinkingEvent(_Event):
    type: Literal["thinking"] = "thinking"
    message: str = THINKING_MESSAGE


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    report: Report
    tool_data_snapshot: dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


ProgressEvent = Annotated[
    Union[
        StatusEvent,
        ToolStartEvent,
        ToolDataEvent,
        ToolEndEvent,
        ThinkingEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)


def parse_event(payload: str | bytes | dict[str, Any]) -> ProgressEvent:
    """Parse one event from its JSON text or decoded mapping.

    Raises:
        pydantic.ValidationError: The payload is not valid JSON or not a known event.
    """

    if isinstance(payload, dict):
        return _EVENT_ADAPTER.validate_python(payload)
    return _EVENT_ADAPTER.validate_json(payload)


def is_terminal(event: ProgressEvent) -> bool:
    """Whether the event ends a run."""

    return isinstance(event, (CompleteEvent, ErrorEvent))
