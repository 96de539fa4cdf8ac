"""End-to-end tests of the HTTP API with a scripted reasoning loop."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from foodguard.api.app import create_app
from foodguard.client.reassembler import SUCCESS_LINE, replay
from foodguard.config import Settings
from foodguard.llm.client import LLMError
from foodguard.regions import DEFAULT_SELECTION


class FakeAssistant:
    def __init__(self, reply: str | Exception = "Lahore is at high risk.") -> None:
        self._reply = reply
        self.calls: list[tuple] = []

    async def reply(self, message, history=(), report=None) -> str:
        self.calls.append((message, list(history), report))
        if isinstance(self._reply, Exception):
            raise self._reply
        return self._reply


def _client(settings: Settings, loop=None, assistant=None) -> TestClient:
    return TestClient(create_app(settings, loop=loop, assistant=assistant))


def _frames(body: bytes) -> list[dict]:
    return [json.loads(part[len(b"data: ") :]) for part in body.split(b"\n\n") if part]


def test_analysis_stream_happy_path(scripted_loop, run_steps, settings) -> None:
    """One region, every tool answers: status milestones, tool triples, then the report."""

    loop = scripted_loop(run_steps)
    response = _client(settings, loop).post("/api/analyze", json={"regions": ["Lahore"], "threadId": "abc"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache, no-transform"

    frames = _frames(response.content)
    assert frames[0]["type"] == "status"
    assert [f["type"] for f in frames].count("tool_start") == 2
    assert frames[-1]["type"] == "complete"
    assert [r["name"] for r in frames[-1]["report"]["regions"]] == ["Lahore"]
    assert loop.calls[0][1] == "abc"

    state = replay([response.content])
    assert state.report is not None and state.report.regions[0].name == "Lahore"
    assert state.progress_log[-1] == SUCCESS_LINE


@pytest.mark.parametrize("body", [{"regions": []}, {"regions": ["  "]}, {}])
def test_analysis_requires_regions(scripted_loop, run_steps, settings, body) -> None:
    loop = scripted_loop(run_steps)

    response = _client(settings, loop).post("/api/analyze", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "At least one region required"}
    assert loop.calls == []


def test_soft_tool_failure_still_completes(scripted_loop, run_steps, settings) -> None:
    response = _client(settings, scripted_loop(run_steps)).post("/api/analyze", json={"regions": ["Lahore"]})

    frames = _frames(response.content)
    assert "error" not in [f["type"] for f in frames]
    snapshot = frames[-1]["toolDataSnapshot"]
    assert snapshot["get_warehouse_stock"]["dataQuality"] == "Low"
    assert snapshot["get_weather_data"]["dataQuality"] == "High"


def test_model_failure_mid_run(scripted_loop, run_steps, settings) -> None:
    loop = scripted_loop([*run_steps[:2], LLMError("LLM request failed after 3 retries: Connection error.")])

    response = _client(settings, loop).post("/api/analyze", json={"regions": ["Lahore"]})

    state = replay([response.content])
    assert state.error == "LLM request failed after 3 retries: Connection error."
    assert state.report is None
    assert state.progress_log == [
        "INITIALIZING FOODGUARD AI ANALYSIS SYSTEM",
        "ANALYZING 1 REGION(S): LAHORE",
        "[FETCHING] WEATHER DATA",
        "[FETCHING] WAREHOUSE INVENTORY",
        "[COMPLETE] WEATHER DATA",
        "[ERROR] LLM request failed after 3 retries: Connection error.",
    ]


def test_stream_split_anywhere_reassembles(scripted_loop, run_steps, settings) -> None:
    body = _client(settings, scripted_loop(run_steps)).post("/api/analyze", json={"regions": ["Lahore"]}).content
    expected = replay([body])

    for offset in range(1, len(body), 7):
        assert replay([body[:offset], body[offset:]]) == expected


def test_loop_unavailable_is_internal_error() -> None:
    """Without an API key the model-backed loop cannot be built."""

    response = _client(Settings(openai_api_key=None)).post("/api/analyze", json={"regions": ["Lahore"]})

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"
    assert "FOODGUARD_OPENAI_API_KEY" in response.json()["details"]


def test_quick_analysis(scripted_loop, run_steps, settings, report) -> None:
    client = _client(settings, scripted_loop(run_steps))

    response = client.get("/api/analyze", params={"region": "Lahore"})

    assert response.status_code == 200
    assert response.json() == {"report": report.to_wire(), "success": True}


def test_quick_analysis_errors(scripted_loop, run_steps, settings) -> None:
    missing = _client(settings, scripted_loop(run_steps)).get("/api/analyze")
    failing = _client(settings, scripted_loop([RuntimeError("model offline")])).get(
        "/api/analyze", params={"region": "Lahore"}
    )
    slow = _client(Settings(openai_api_key="k", quick_timeout_s=0.05), scripted_loop(run_steps, delay_s=1.0)).get(
        "/api/analyze", params={"region": "Lahore"}
    )

    assert missing.status_code == 400
    assert missing.json() == {"error": "Region required"}
    assert failing.status_code == 500
    assert failing.json() == {"error": "Failed to analyze region", "details": "model offline"}
    assert slow.status_code == 504
    assert slow.json()["details"] == "Quick analysis timed out after 0.05 seconds"


def test_chat(settings, report) -> None:
    assistant = FakeAssistant()
    client = _client(settings, assistant=assistant)

    response = client.post(
        "/api/chat",
        json={
            "message": "  Which region is worst?  ",
            "chatHistory": [{"role": "user", "content": "hi"}, {"role": "bot", "content": "hello"}],
            "reportContext": report.to_wire(),
        },
    )

    assert response.status_code == 200
    assert response.json() == {"response": "Lahore is at high risk.", "success": True}
    message, history, context = assistant.calls[0]
    assert message == "Which region is worst?"
    assert [m.role for m in history] == ["user", "assistant"]
    assert context == report


def test_chat_errors(settings) -> None:
    empty = _client(settings, assistant=FakeAssistant()).post("/api/chat", json={"message": "   "})
    failing = _client(settings, assistant=FakeAssistant(LLMError("quota exceeded"))).post(
        "/api/chat", json={"message": "hello"}
    )
    slow = _client(settings, assistant=FakeAssistant(asyncio.TimeoutError())).post(
        "/api/chat", json={"message": "hello"}
    )

    assert empty.status_code == 400
    assert empty.json() == {"error": "Message is required", "success": False}
    assert failing.status_code == 500
    assert failing.json() == {"error": "Failed to generate response", "message": "quota exceeded", "success": False}
    assert slow.status_code == 500
    assert slow.json()["message"] == "Chat timed out after 5 seconds"


def test_health_and_regions(settings) -> None:
    client = _client(settings)

    assert client.get("/health").json() == {"status": "ok"}
    regions = client.get("/api/regions").json()
    assert regions["defaultSelection"] == list(DEFAULT_SELECTION)
    assert "Lahore" in regions["districts"]
    assert set(regions["defaultSelection"]) <= set(regions["dashboard"])


def _analyze_scope(body: bytes, spec_version: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": spec_version},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": "/api/analyze",
        "raw_path": b"/api/analyze",
        "root_path": "",
        "query_string": b"",
        "headers": [
            (b"host", b"testserver"),
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }


@pytest.mark.parametrize("spec_version", ["2.3", "2.4"])
def test_client_disconnect_stops_the_run(scripted_loop, run_steps, settings, spec_version) -> None:
    """Once the client goes away no further steps are pulled and the loop is closed."""

    loop = scripted_loop([run_steps[1]] * 20, delay_s=0.05)
    app = create_app(settings, loop=loop)
    body = json.dumps({"regions": ["Lahore"]}).encode()

    async def scenario() -> tuple[int, int]:
        gone = asyncio.Event()
        frames: list[bytes] = []
        request_sent = False

        async def receive() -> dict:
            nonlocal request_sent
            if not request_sent:
                request_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            await gone.wait()
            return {"type": "http.disconnect"}

        async def send(message: dict) -> None:
            if message["type"] == "http.response.body" and message.get("body"):
                frames.append(message["body"])
                if len(frames) >= 3:
                    gone.set()

        await app(_analyze_scope(body, spec_version), receive, send)
        at_return = loop.consumed
        await asyncio.sleep(0.3)
        return at_return, loop.consumed

    at_return, later = asyncio.run(scenario())

    assert at_return < 5
    assert later == at_return
    assert loop.closed
