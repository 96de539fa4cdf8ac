"""Pydantic models used across the project."""

from __future__ import annotations

from foodguard.models.report import (
    Coordinates,
    CriticalAction,
    DataQuality,
    RegionAssessment,
    Report,
    ReportMetadata,
    RiskLevel,
    Urgency,
)

__all__ = [
    "Coordinates",
    "CriticalAction",
    "DataQuality",
    "RegionAssessment",
    "Report",
    "ReportMetadata",
    "RiskLevel",
    "Urgency",
]
