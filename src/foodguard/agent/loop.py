"""Tool-calling reasoning loop over the OpenAI Chat Completions API.

Each model turn either requests tool calls, which are executed one at a time in a worker
thread and fed back, or answers with the final report as JSON. The loop yields a step for
every message it appends to the conversation.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Sequence

from pydantic import ValidationError

from foodguard.agent.memory import ThreadMemory
from foodguard.agent.steps import (
    AIMessage,
    ReasoningLoopError,
    ReportValidationError,
    Step,
    ToolCallRequest,
    ToolMessage,
)
from foodguard.config import Settings
from foodguard.llm.client import ChatMessage, LLMClient
from foodguard.logging import get_logger, set_step, tool_context
from foodguard.models.report import Report
from foodguard.prompts import ANALYSIS_SYSTEM_PROMPT
from foodguard.tools.base import error_marker
from foodguard.tools.registry import ToolRegistry

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""

    m = _FENCE_RE.match(text)
    return m.group(1) if m else text.strip()


def _decode_arguments(raw: str | None, *, tool: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        with tool_context(tool):
            logger.warning("Tool call arguments are not valid JSON", extra={"arguments": raw})
        return {}
    return args if isinstance(args, dict) else {}


class OpenAIReasoningLoop:
    """Concrete reasoning loop backed by :class:`LLMClient` and a :class:`ToolRegistry`."""

    def __init__(
        self,
        llm: LLMClient,
        registry: ToolRegistry,
        settings: Settings,
        memory: ThreadMemory | None = None,
    ) -> None:
        self._llm = llm
        self._registry = registry
        self._settings = settings
        self._memory = memory if memory is not None else ThreadMemory(settings.memory_max_threads)

    @property
    def memory(self) -> ThreadMemory:
        return self._memory

    async def stream(self, conversation: Sequence[ChatMessage], *, thread_id: str) -> AsyncIterator[Step]:
        started = time.monotonic()
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            *self._memory.load(thread_id),
            *({"role": m.role, "content": m.content} for m in conversation),
        ]
        tools = self._registry.openai_tools()
        tools_used: list[str] = []

        for turn in range(1, self._settings.agent_max_steps + 1):
            set_step(f"turn:{turn}")
            reply = await self._llm.chat_with_tools(
                messages,
                tools,
                temperature=self._settings.agent_temperature,
                max_tokens=self._settings.agent_max_tokens,
            )
            content = reply.content or ""

            if reply.tool_calls:
                calls = tuple(
                    ToolCallRequest(
                        id=tc.id,
                        name=tc.function.name,
                        arguments=_decode_arguments(tc.function.arguments, tool=tc.function.name),
                    )
                    for tc in reply.tool_calls
                )
                messages.append(
                    {
                        "role": "assistant",
                        "content": content or None,
                        "tool_calls": [
                            {
                                "id": tc.id,
                                "type": "function",
                                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                            }
                            for tc in reply.tool_calls
                        ],
                    }
                )
                logger.info("Model requested tools", extra={"tools": [c.name for c in calls]})
                yield Step(latest_message=AIMessage(content=content, tool_calls=calls))

                for call in calls:
                    if call.name not in tools_used:
                        tools_used.append(call.name)
                    result = await asyncio.to_thread(self._registry.execute, call.name, call.arguments)
                    payload = result.content if result.success else error_marker(call.name, result.error)
                    text = json.dumps(payload, ensure_ascii=False, default=str)
                    messages.append({"role": "tool", "tool_call_id": call.id, "content": text})
                    yield Step(latest_message=ToolMessage(tool_call_id=call.id, name=call.name, content=text))
                continue

            report = self._build_report(content, tools_used=tools_used, started=started)
            messages.append({"role": "assistant", "content": content})
            self._memory.save(thread_id, messages)
            logger.info(
                "Report produced",
                extra={"report_id": report.report_id, "regions": len(report.regions), "turns": turn},
            )
            yield Step(latest_message=AIMessage(content=content), structured_response=report)
            return

        raise ReasoningLoopError(f"No report after {self._settings.agent_max_steps} model turns")

    def _build_report(self, content: str, *, tools_used: list[str], started: float) -> Report:
        """Parse and validate the model's final answer.

        Raises:
            ReportValidationError: The answer is not JSON or does not match the report schema.
        """

        try:
            data = json.loads(strip_code_fences(content))
        except json.JSONDecodeError as e:
            raise ReportValidationError(f"Final answer is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ReportValidationError("Final answer is not a JSON object")

        if not data.get("reportId"):
            data["reportId"] = f"FG-{uuid.uuid4().hex[:12].upper()}"
        if not data.get("generatedAt"):
            data["generatedAt"] = datetime.now(timezone.utc).isoformat()
        metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        data["metadata"] = {
            **metadata,
            "toolsUsed": list(tools_used),
            "executionTimeMs": round((time.monotonic() - started) * 1000),
            "modelVersion": self._llm.model,
        }

        try:
            return Report.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first["loc"])
            raise ReportValidationError(
                f"Report failed schema validation ({e.error_count()} error(s)): {loc}: {first['msg']}"
            ) from e
