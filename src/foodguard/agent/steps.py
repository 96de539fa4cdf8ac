"""Reasoning loop interface.

A reasoning loop is driven by a conversation and yields one :class:`Step` each time the
conversation state gains a message. Only the terminal step carries the structured report.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Protocol, Sequence, Union

from foodguard.llm.client import ChatMessage
from foodguard.models.report import Report


class ReasoningLoopError(RuntimeError):
    """The reasoning loop failed before producing a report."""


class ReportValidationError(ReasoningLoopError):
    """The model's final answer is not a valid report."""


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AIMessage:
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()


@dataclass(frozen=True)
class ToolMessage:
    tool_call_id: str
    name: str
    # JSON text, or an already-decoded value
    content: Any


Message = Union[AIMessage, ToolMessage]


@dataclass(frozen=True)
class Step:
    """Latest state of the conversation."""

    latest_message: Message
    structured_response: Report | None = None


class ReasoningLoop(Protocol):
    def stream(self, conversation: Sequence[ChatMessage], *, thread_id: str) -> AsyncIterator[Step]:
        """Run the loop, yielding a step per appended message."""
        ...


async def run_to_completion(
    loop: ReasoningLoop,
    conversation: Sequence[ChatMessage],
    *,
    thread_id: str,
) -> Report:
    """Drive a loop to its terminal step and return the report.

    Raises:
        ReasoningLoopError: The loop ended without a report.
    """

    async with contextlib.aclosing(loop.stream(conversation, thread_id=thread_id)) as steps:
        async for step in steps:
            if step.structured_response is not None:
                return step.structured_response
    raise ReasoningLoopError("Reasoning loop ended without a report")
