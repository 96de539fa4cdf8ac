"""Seasonal yield forecast (simulated from provincial baseline yields)."""

from __future__ import annotations

import random
from typing import Any

from foodguard.logging import get_logger
from foodguard.tools.base import error_marker

logger = get_logger(__name__)

NAME = "get_production_forecast"
DESCRIPTION = (
    "Predicts agricultural yield for upcoming season based on regional baseline data and current "
    "conditions. Includes risk assessment and recommendations."
)
SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "region": {
            "type": "string",
            "description": "The region to forecast (e.g., 'Punjab', 'Sindh', 'KPK', 'Balochistan')",
        },
        "crop": {
            "type": "string",
            "description": "The crop to forecast yield for (e.g., 'wheat', 'rice', 'corn', 'cotton')",
        },
    },
    "required": ["region", "crop"],
}

# kg/hectare, Pakistan agricultural statistics
BASE_YIELDS: dict[str, dict[str, int]] = {
    "wheat": {"punjab": 3200, "sindh": 2800, "kpk": 2400, "balochistan": 2000},
    "rice": {"punjab": 2800, "sindh": 2500, "kpk": 2200, "balochistan": 1800},
    "corn": {"punjab": 4500, "sindh": 3800, "kpk": 3500, "balochistan": 2800},
    "cotton": {"punjab": 2200, "sindh": 1900, "kpk": 1600, "balochistan": 1400},
}
DEFAULT_YIELD = 2500

HARVEST_PERIODS = {
    "wheat": "April - May",
    "rice": "October - November",
    "corn": "August - September",
    "cotton": "October - December",
}


class ProductionForecastTool:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def __call__(self, region: str, crop: str) -> dict[str, Any]:
        try:
            return self._forecast(region, crop)
        except (AttributeError, TypeError) as e:
            logger.warning("Production forecast failed", extra={"region": region, "crop": crop, "error": str(e)})
            return error_marker("Production forecast", e, region=region, crop=crop)

    def _forecast(self, region: str, crop: str) -> dict[str, Any]:
        region_key = region.strip().lower()
        crop_key = crop.strip().lower()
        base_yield = BASE_YIELDS.get(crop_key, {}).get(region_key, DEFAULT_YIELD)

        # +/-15% around the baseline
        variability = (self._rng.random() - 0.5) * 0.30
        expected_yield = int(base_yield * (1 + variability))
        yield_change = round(variability * 100, 2)
        confidence = 70 + self._rng.random() * 25

        risk_factors = [
            {
                "factor": "Weather variability",
                "impact": "High" if abs(variability) > 0.1 else "Medium",
                "description": "Unpredictable rainfall and temperature patterns",
            },
            {
                "factor": "Water availability",
                "impact": "High" if region_key == "balochistan" else "Medium",
                "description": "Irrigation water supply constraints",
            },
            {
                "factor": "Pest pressure",
                "impact": "High" if crop_key == "cotton" else "Low",
                "description": "Pest and disease outbreak risk",
            },
            {
                "factor": "Input costs",
                "impact": "Medium",
                "description": "Fertilizer and fuel price fluctuations",
            },
        ]

        return {
            "region": region,
            "crop": crop,
            "expectedYield": expected_yield,
            "baselineYield": base_yield,
            "unit": "kg/hectare",
            "yieldChange": f"{'+' if yield_change > 0 else ''}{yield_change:.2f}%",
            "confidenceLevel": round(confidence, 2),
            "harvestPeriod": HARVEST_PERIODS.get(crop_key, "Variable"),
            "riskFactors": risk_factors,
            "recommendations": (
                ["Increase irrigation frequency", "Apply additional fertilizers", "Monitor pest activity"]
                if variability < -0.1
                else ["Continue standard practices", "Prepare for harvest"]
            ),
            "totalExpectedProduction": f"{expected_yield * 1000:,} kg/1000 hectares",
            "source": "Pakistan Agricultural Statistics & Forecast Model",
            "dataQuality": "Medium",
        }
