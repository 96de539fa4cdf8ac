"""Past shortage events and seasonal patterns (simulated)."""

from __future__ import annotations

import calendar
import random
from datetime import date
from typing import Any, Callable

from foodguard.logging import get_logger
from foodguard.tools.base import error_marker

logger = get_logger(__name__)

NAME = "get_historical_shortage_data"
DESCRIPTION = (
    "Retrieves past shortage events to identify patterns and seasonal trends. NOTE: Currently using "
    "simulated data - requires connection to historical database."
)
SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "region": {"type": "string", "description": "The region to analyze"},
        "months_back": {
            "type": "integer",
            "description": "Number of months to look back (default: 6)",
            "default": 6,
            "minimum": 1,
            "maximum": 24,
        },
    },
    "required": ["region"],
}


class HistoricalShortageTool:
    def __init__(self, rng: random.Random | None = None, *, today: Callable[[], date] = date.today) -> None:
        self._rng = rng or random.Random()
        self._today = today

    def __call__(self, region: str, months_back: int = 6) -> dict[str, Any]:
        try:
            return self._history(region, int(months_back))
        except (TypeError, ValueError) as e:
            logger.warning("Historical data lookup failed", extra={"region": region, "error": str(e)})
            return error_marker("Historical data", e, region=region)

    def _level(self) -> str:
        if self._rng.random() > 0.7:
            return "High"
        if self._rng.random() > 0.4:
            return "Medium"
        return "Low"

    def _amount(self, level: str) -> int:
        if level == "High":
            return int(2000 + self._rng.random() * 2000)
        if level == "Medium":
            return int(500 + self._rng.random() * 1500)
        return 0

    def _history(self, region: str, months_back: int) -> dict[str, Any]:
        if months_back < 1:
            raise ValueError("months_back must be positive")

        current_month = self._today().month - 1
        breakdown: list[dict[str, Any]] = []
        for i in range(months_back - 1, -1, -1):
            month_index = (current_month - i) % 12
            level = self._level()
            breakdown.append(
                {
                    "month": calendar.month_name[month_index + 1],
                    "shortageLevel": level,
                    "shortageAmount": self._amount(level),
                    "unit": "metric tons",
                }
            )

        events = sum(1 for row in breakdown if row["shortageLevel"] != "Low")
        avg_amount = sum(row["shortageAmount"] for row in breakdown) / len(breakdown)
        high_risk = [row["month"] for row in breakdown if row["shortageLevel"] == "High"]

        return {
            "region": region,
            "analysisPeriod": f"Past {months_back} months",
            "summary": {
                "totalShortageEvents": events,
                "avgShortageAmount": int(avg_amount),
                "unit": "metric tons per event",
            },
            "monthlyBreakdown": breakdown,
            "seasonalPattern": {
                "highRiskMonths": high_risk or ["No clear pattern"],
                "insight": "Shortages historically correlate with pre-harvest periods and extreme weather events",
            },
            "trends": {
                "increasing": self._rng.random() > 0.5,
                "severity": "Moderate fluctuation in shortage frequency",
            },
            "note": "Simulated historical data - connect to actual historical database for accurate patterns",
            "dataQuality": "Low",
        }
