"""Tests for progress events and the report schema."""

from __future__ import annotations

import json
from typing import get_args

import pytest
from pydantic import ValidationError

from foodguard.events import (
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StatusEvent,
    ThinkingEvent,
    ToolDataEvent,
    ToolStartEvent,
    is_terminal,
    parse_event,
)
from foodguard.models.report import Report


def test_complete_event_round_trips_report(report: Report) -> None:
    """A report carried in a complete event should survive serialize/parse unchanged."""

    event = CompleteEvent(report=report, tool_data_snapshot={"get_weather_data": {"dataQuality": "High"}})
    parsed = parse_event(json.dumps(event.to_wire()))

    assert isinstance(parsed, CompleteEvent)
    assert parsed.report == report
    assert parsed.tool_data_snapshot == {"get_weather_data": {"dataQuality": "High"}}


def test_wire_keys_are_camel_case(report: Report) -> None:
    """Events and reports should serialize with camelCase keys."""

    wire = CompleteEvent(report=report).to_wire()

    assert wire["type"] == "complete"
    assert "toolDataSnapshot" in wire
    assert wire["report"]["overallRiskLevel"] == "High"
    region = wire["report"]["regions"][0]
    assert region["confidenceScore"] == 82
    assert region["surplusAmount"] is None
    assert wire["report"]["metadata"]["toolsUsed"] == ["get_weather_data", "get_warehouse_stock"]


def test_tool_start_wire_shape() -> None:
    wire = ToolStartEvent(
        tool_id="call_1", tool_name="get_weather_data", display_label="WEATHER DATA", message="[FETCHING] WEATHER DATA"
    ).to_wire()

    assert wire == {
        "type": "tool_start",
        "toolId": "call_1",
        "toolName": "get_weather_data",
        "displayLabel": "WEATHER DATA",
        "message": "[FETCHING] WEATHER DATA",
    }


def test_parse_event_accepts_mapping_and_bytes() -> None:
    assert parse_event({"type": "status", "message": "hi"}) == StatusEvent(message="hi")
    assert parse_event(b'{"type":"thinking","message":"x"}') == ThinkingEvent(message="x")
    assert parse_event('{"type":"tool_data","toolName":"t","data":[1,2]}') == ToolDataEvent(
        tool_name="t", data=[1, 2]
    )


def test_parse_event_rejects_unknown_type_and_bad_json() -> None:
    with pytest.raises(ValidationError):
        parse_event('{"type":"progress","message":"x"}')
    with pytest.raises(ValidationError):
        parse_event('{"type":"status", "message":')


def test_is_terminal(report: Report) -> None:
    assert is_terminal(CompleteEvent(report=report))
    assert is_terminal(ErrorEvent(message="boom"))
    assert not is_terminal(StatusEvent(message="x"))


def test_report_rejects_schema_violations(report_payload) -> None:
    """Invalid enums, ranges and empty region lists are hard failures."""

    bad_risk = report_payload()
    bad_risk["overallRiskLevel"] = "Severe"
    with pytest.raises(ValidationError):
        Report.model_validate(bad_risk)

    bad_confidence = report_payload()
    bad_confidence["regions"][0]["confidenceScore"] = 120
    with pytest.raises(ValidationError):
        Report.model_validate(bad_confidence)

    no_regions = report_payload()
    no_regions["regions"] = []
    with pytest.raises(ValidationError):
        Report.model_validate(no_regions)

    bad_urgency = report_payload()
    bad_urgency["criticalActions"][0]["urgency"] = "Soon"
    with pytest.raises(ValidationError):
        Report.model_validate(bad_urgency)


def test_union_members_cover_every_wire_type() -> None:
    members = get_args(get_args(ProgressEvent)[0])

    assert sorted(m.model_fields["type"].default for m in members) == sorted(
        ["status", "tool_start", "tool_data", "tool_end", "thinking", "complete", "error"]
    )
