"""Tests for the OpenAI-backed reasoning loop, driven by a scripted model."""

from __future__ import annotations

import asyncio
import json
import logging
from types import SimpleNamespace
from typing import Any

import pytest

from foodguard.agent.loop import OpenAIReasoningLoop, _decode_arguments, strip_code_fences
from foodguard.agent.memory import ThreadMemory
from foodguard.agent.steps import (
    AIMessage,
    ReasoningLoopError,
    ReportValidationError,
    ToolMessage,
    run_to_completion,
)
from foodguard.config import Settings
from foodguard.llm.client import ChatMessage, LLMError
from foodguard.logging import _ContextFilter
from foodguard.prompts import ANALYSIS_SYSTEM_PROMPT
from foodguard.tools.registry import ToolRegistry


class FakeLLM:
    """Stands in for LLMClient; replays canned assistant messages."""

    model = "fake-model-1"

    def __init__(self, replies: list[Any]) -> None:
        self.replies = list(replies)
        self.requests: list[list[dict[str, Any]]] = []

    async def chat_with_tools(self, messages, tools, *, temperature, max_tokens):
        self.requests.append([dict(m) for m in messages])
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _calls(*calls: tuple[str, str, Any]) -> SimpleNamespace:
    return SimpleNamespace(
        content=None,
        tool_calls=[
            SimpleNamespace(
                id=call_id,
                function=SimpleNamespace(name=name, arguments=args if isinstance(args, str) else json.dumps(args)),
            )
            for call_id, name, args in calls
        ],
    )


def _final(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=text, tool_calls=None)


def _registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_function(
        "get_weather_data",
        lambda district: {"district": district, "dataQuality": "High"},
        "Weather",
        {"type": "object", "properties": {"district": {"type": "string"}}, "required": ["district"]},
    )
    registry.register_function(
        "get_market_prices",
        lambda crop: {"crop": crop, "dataQuality": "High"},
        "Prices",
        {"type": "object", "properties": {"crop": {"type": "string"}}, "required": ["crop"]},
    )
    return registry


def _loop(replies: list[Any], settings: Settings, memory: ThreadMemory | None = None):
    llm = FakeLLM(replies)
    return llm, OpenAIReasoningLoop(llm, _registry(), settings, memory)  # type: ignore[arg-type]


_CONVERSATION = [ChatMessage(role="user", content="Analyze food security for regions: Lahore. Date range: next 30 days")]


def test_loop_yields_steps_and_report(settings, report_payload, collect) -> None:
    """Tool turns yield the assistant step then one step per tool result; the answer ends the loop."""

    llm, loop = _loop(
        [
            _calls(("c1", "get_weather_data", {"district": "Lahore"}), ("c2", "get_market_prices", {"crop": "wheat"})),
            _calls(("c3", "get_weather_data", {"district": "Lahore"})),
            _final(json.dumps(report_payload("Lahore"))),
        ],
        settings,
    )

    steps = collect(loop.stream(_CONVERSATION, thread_id="t1"))

    kinds = [type(s.latest_message).__name__ for s in steps]
    assert kinds == ["AIMessage", "ToolMessage", "ToolMessage", "AIMessage", "ToolMessage", "AIMessage"]
    assert [c.id for c in steps[0].latest_message.tool_calls] == ["c1", "c2"]
    assert json.loads(steps[1].latest_message.content) == {"district": "Lahore", "dataQuality": "High"}
    assert all(s.structured_response is None for s in steps[:-1])

    report = steps[-1].structured_response
    assert report is not None and report.regions[0].name == "Lahore"
    assert report.metadata.tools_used == ["get_weather_data", "get_market_prices"]
    assert report.metadata.model_version == "fake-model-1"
    assert report.metadata.execution_time_ms >= 0

    first_request = llm.requests[0]
    assert first_request[0] == {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT}
    assert first_request[-1]["role"] == "user"
    third_request = llm.requests[2]
    assert [m["role"] for m in third_request[-2:]] == ["assistant", "tool"]
    assert third_request[-1]["tool_call_id"] == "c3"


def test_tool_failure_is_fed_back_as_error_marker(settings, report_payload, collect) -> None:
    _, loop = _loop(
        [
            _calls(("c1", "get_weather_data", "{not json")),
            _final(json.dumps(report_payload())),
        ],
        settings,
    )

    steps = collect(loop.stream(_CONVERSATION, thread_id="t"))

    tool_step = steps[1].latest_message
    assert isinstance(tool_step, ToolMessage)
    content = json.loads(tool_step.content)
    assert content["dataQuality"] == "Low"
    assert content["error"].startswith("get_weather_data unavailable: TypeError")


def test_report_in_code_fence_and_missing_ids_are_filled(settings, report_payload, collect) -> None:
    payload = report_payload("Karachi")
    del payload["reportId"], payload["generatedAt"], payload["metadata"]
    _, loop = _loop([_final("```json\n" + json.dumps(payload) + "\n```")], settings)

    steps = collect(loop.stream(_CONVERSATION, thread_id="t"))

    report = steps[-1].structured_response
    assert report.report_id.startswith("FG-")
    assert report.generated_at
    assert report.metadata.tools_used == []
    assert isinstance(steps[-1].latest_message, AIMessage)


def test_invalid_report_is_a_hard_failure(settings, report_payload, collect) -> None:
    payload = report_payload()
    payload["regions"][0]["riskLevel"] = "Catastrophic"
    _, bad_schema = _loop([_final(json.dumps(payload))], settings)
    _, not_json = _loop([_final("The situation in Lahore looks fine.")], settings)

    with pytest.raises(ReportValidationError, match="regions.0.riskLevel"):
        collect(bad_schema.stream(_CONVERSATION, thread_id="t"))
    with pytest.raises(ReportValidationError, match="not valid JSON"):
        collect(not_json.stream(_CONVERSATION, thread_id="t"))


def test_max_steps_exceeded(collect) -> None:
    settings = Settings(openai_api_key="k", agent_max_steps=2)
    _, loop = _loop(
        [_calls((f"c{i}", "get_market_prices", {"crop": "rice"})) for i in range(3)],
        settings,
    )

    with pytest.raises(ReasoningLoopError, match="No report after 2 model turns"):
        collect(loop.stream(_CONVERSATION, thread_id="t"))


def test_model_failure_propagates(settings, collect) -> None:
    _, loop = _loop([LLMError("LLM request failed after 0 retries: boom")], settings)

    with pytest.raises(LLMError):
        collect(loop.stream(_CONVERSATION, thread_id="t"))


def test_thread_memory_carries_conversation(settings, report_payload, collect) -> None:
    """A second run on the same thread sees the first run's messages; other threads do not."""

    memory = ThreadMemory(max_threads=4)
    llm, loop = _loop(
        [
            _final(json.dumps(report_payload("Lahore"))),
            _final(json.dumps(report_payload("Lahore"))),
            _final(json.dumps(report_payload("Quetta"))),
        ],
        settings,
        memory,
    )

    collect(loop.stream(_CONVERSATION, thread_id="thread-a"))
    follow_up = [ChatMessage(role="user", content="And what about next month?")]
    collect(loop.stream(follow_up, thread_id="thread-a"))
    collect(loop.stream(follow_up, thread_id="thread-b"))

    second = llm.requests[1]
    assert [m["role"] for m in second] == ["system", "user", "assistant", "user"]
    assert second[1]["content"] == _CONVERSATION[0].content
    assert [m["role"] for m in llm.requests[2]] == ["system", "user"]
    assert "thread-a" in memory and "thread-b" in memory


def test_run_to_completion_returns_report(settings, report_payload) -> None:
    _, loop = _loop(
        [_calls(("c1", "get_weather_data", {"district": "Quetta"})), _final(json.dumps(report_payload("Quetta")))],
        settings,
    )

    report = asyncio.run(run_to_completion(loop, _CONVERSATION, thread_id="q"))

    assert report.regions[0].name == "Quetta"


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n[1]\n```  ') == "[1]"
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


def test_bad_tool_arguments_are_logged_with_their_tool(caplog: pytest.LogCaptureFixture) -> None:
    caplog.handler.addFilter(_ContextFilter())

    with caplog.at_level(logging.WARNING):
        args = _decode_arguments('{"district": ', tool="get_weather_data")

    assert args == {}
    record = next(r for r in caplog.records if r.getMessage() == "Tool call arguments are not valid JSON")
    assert record.tool == "get_weather_data"
    assert record.arguments == '{"district": '
