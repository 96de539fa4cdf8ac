"""Food security report schema.

The report is the terminal payload of an analysis run. It is produced by the reasoning loop,
validated here, carried in the ``complete`` event and rendered by clients. Field names are
snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["Critical", "High", "Medium", "Low"]
DataQuality = Literal["High", "Medium", "Low"]
Urgency = Literal["Immediate", "Within 7 days", "Within 30 days"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump to JSON-compatible data with camelCase keys."""

        return self.model_dump(mode="json", by_alias=True)


class Coordinates(_WireModel):
    """Map pin for a region."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RegionAssessment(_WireModel):
    """Risk assessment for one requested region."""

    name: str
    risk_level: RiskLevel
    confidence_score: float = Field(ge=0, le=100, description="0-100% confidence in prediction")
    shortage_amount: float = Field(ge=0, description="Predicted shortage in metric tons")
    surplus_amount: float | None = Field(default=None, description="Surplus if any, in metric tons")
    affected_crops: list[str]
    recommended_action: str = Field(description="Specific logistics recommendation")
    coordinates: Coordinates
    data_quality: DataQuality = Field(description="Quality of input data")
    key_factors: list[str] = Field(description="Main contributing factors to shortage/surplus")


class CriticalAction(_WireModel):
    action: str
    urgency: Urgency
    requires_approval: bool


class ReportMetadata(_WireModel):
    tools_used: list[str]
    execution_time_ms: float = Field(ge=0)
    model_version: str


class Report(_WireModel):
    """Structured food security report."""

    report_id: str
    generated_at: str = Field(description="ISO 8601 timestamp")
    overall_risk_level: RiskLevel
    summary: str = Field(description="2-3 sentence executive summary")
    regions: list[RegionAssessment] = Field(min_length=1)
    critical_actions: list[CriticalAction]
    metadata: ReportMetadata
