"""Shared fixtures."""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Sequence

import pytest

from foodguard.agent.steps import AIMessage, Step, ToolCallRequest, ToolMessage
from foodguard.config import Settings
from foodguard.llm.client import ChatMessage
from foodguard.models.report import Report


def _report_payload(*regions: str) -> dict[str, Any]:
    return {
        "reportId": "FG-TEST-0001",
        "generatedAt": "2026-01-15T08:30:00+00:00",
        "overallRiskLevel": "High",
        "summary": "Wheat stocks in Punjab are below seasonal norms. Heat stress raises shortage risk.",
        "regions": [
            {
                "name": name,
                "riskLevel": "High",
                "confidenceScore": 82,
                "shortageAmount": 1500,
                "surplusAmount": None,
                "affectedCrops": ["wheat", "rice"],
                "recommendedAction": "Transfer 1,500 t of wheat from Sindh reserves",
                "coordinates": {"lat": 31.5204, "lng": 74.3587},
                "dataQuality": "Medium",
                "keyFactors": ["Heat stress", "Low warehouse stock"],
            }
            for name in (regions or ("Lahore",))
        ],
        "criticalActions": [
            {"action": "Release strategic wheat reserve", "urgency": "Within 7 days", "requiresApproval": True}
        ],
        "metadata": {
            "toolsUsed": ["get_weather_data", "get_warehouse_stock"],
            "executionTimeMs": 4200,
            "modelVersion": "gpt-4o-mini",
        },
    }


@pytest.fixture
def report_payload() -> Callable[..., dict[str, Any]]:
    """Factory for a valid camelCase report payload."""

    return _report_payload


@pytest.fixture
def report() -> Report:
    return Report.model_validate(_report_payload("Lahore"))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="test-key",
        stream_timeout_s=5.0,
        quick_timeout_s=5.0,
        chat_timeout_s=5.0,
        llm_max_retries=0,
    )


WEATHER_RESULT = {"district": "Lahore", "current": {"temperature": 36.5}, "dataQuality": "High"}
WAREHOUSE_ERROR = {
    "error": "Warehouse stock data unavailable: database offline",
    "region": "Punjab",
    "dataQuality": "Low",
}


@pytest.fixture
def run_steps(report: Report) -> list[Step]:
    """A complete run: two tool calls, one failing softly, then the report."""

    return [
        Step(
            AIMessage(
                tool_calls=(
                    ToolCallRequest("call_1", "get_weather_data", {"district": "Lahore"}),
                    ToolCallRequest("call_2", "get_warehouse_stock", {"region": "Punjab"}),
                )
            )
        ),
        Step(ToolMessage("call_1", "get_weather_data", json.dumps(WEATHER_RESULT))),
        Step(ToolMessage("call_2", "get_warehouse_stock", json.dumps(WAREHOUSE_ERROR))),
        Step(AIMessage(content=json.dumps(report.to_wire())), structured_response=report),
    ]


class ScriptedLoop:
    """Reasoning loop that replays a fixed list of steps.

    An ``Exception`` instance in the script is raised at that position.
    """

    def __init__(self, script: Sequence[Step | Exception], *, delay_s: float = 0.0) -> None:
        self.script = list(script)
        self.delay_s = delay_s
        self.calls: list[tuple[list[ChatMessage], str]] = []
        self.consumed = 0
        self.closed = False

    async def stream(self, conversation: Sequence[ChatMessage], *, thread_id: str) -> AsyncIterator[Step]:
        self.calls.append((list(conversation), thread_id))
        try:
            for item in self.script:
                if self.delay_s:
                    await asyncio.sleep(self.delay_s)
                self.consumed += 1
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed = True


@pytest.fixture
def scripted_loop() -> type[ScriptedLoop]:
    return ScriptedLoop


async def _collect(aiter: AsyncIterator[Any]) -> list[Any]:
    return [item async for item in aiter]


@pytest.fixture
def collect() -> Callable[[AsyncIterator[Any]], list[Any]]:
    """Drain an async iterator synchronously."""

    def _run(aiter: AsyncIterator[Any]) -> list[Any]:
        return asyncio.run(_collect(aiter))

    return _run
