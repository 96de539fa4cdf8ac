"""Reasoning loop."""

from __future__ import annotations

from foodguard.agent.loop import OpenAIReasoningLoop, strip_code_fences
from foodguard.agent.memory import ThreadMemory
from foodguard.agent.steps import (
    AIMessage,
    ReasoningLoop,
    ReasoningLoopError,
    ReportValidationError,
    Step,
    ToolCallRequest,
    ToolMessage,
    run_to_completion,
)

__all__ = [
    "AIMessage",
    "OpenAIReasoningLoop",
    "ReasoningLoop",
    "ReasoningLoopError",
    "ReportValidationError",
    "Step",
    "ThreadMemory",
    "ToolCallRequest",
    "ToolMessage",
    "run_to_completion",
    "strip_code_fences",
]
