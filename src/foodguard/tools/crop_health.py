"""Crop health from satellite agro-meteorology (NASA POWER).

The score starts at 50 and moves with how close each indicator sits to the band that suits
wheat, rice and maize in Pakistan; it is clamped to 0-100.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Callable

import httpx

from foodguard.logging import get_logger
from foodguard.regions import PROVINCES, UnknownLocationError, lookup
from foodguard.tools.base import DataSourceError, error_marker, get_json, mean_or, valid_values

logger = get_logger(__name__)

NAME = "get_crop_health"
DESCRIPTION = (
    "Analyzes crop health using NASA satellite agricultural data including temperature, rainfall, "
    "humidity, solar radiation, and Growing Degree Days. Provides health score and risk assessment."
)
SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "region": {
            "type": "string",
            "description": "Region name (e.g., 'Punjab', 'Sindh', 'KPK', 'Balochistan', 'Gilgit', 'Kashmir')",
        },
        "days_back": {
            "type": "integer",
            "description": "Number of days to analyze (default: 30)",
            "default": 30,
            "minimum": 1,
            "maximum": 365,
        },
    },
    "required": ["region"],
}

_PARAMETERS = ("T2M", "T2M_MAX", "T2M_MIN", "PRECTOTCORR", "RH2M", "WS2M", "ALLSKY_SFC_SW_DWN")
GDD_BASE_C = 10.0


def health_score(
    *, avg_temp: float, gdd: float, total_rain: float, avg_humidity: float, avg_solar: float
) -> int:
    score = 50

    if 18 <= avg_temp <= 28:
        score += 25
    elif 15 <= avg_temp <= 32:
        score += 15
    elif 10 <= avg_temp <= 38:
        score += 5
    elif avg_temp < 5 or avg_temp > 40:
        score -= 20

    if 80 <= gdd <= 150:
        score += 20
    elif 50 <= gdd <= 180:
        score += 10
    elif gdd < 40 or gdd > 200:
        score -= 10

    if 40 <= total_rain <= 120:
        score += 25
    elif 25 <= total_rain <= 150:
        score += 15
    elif 10 <= total_rain <= 200:
        score += 5
    elif total_rain < 10:
        score -= 20
    else:
        score -= 15

    if 50 <= avg_humidity <= 70:
        score += 15
    elif 40 <= avg_humidity <= 80:
        score += 8
    elif avg_humidity < 30:
        score -= 15
    elif avg_humidity > 85:
        score -= 10

    if 18 <= avg_solar <= 24:
        score += 15
    elif 15 <= avg_solar <= 26:
        score += 8

    return min(100, max(0, score))


def condition_for(score: int) -> str:
    if score > 75:
        return "Excellent"
    if score > 60:
        return "Good"
    if score > 45:
        return "Fair"
    return "Poor"


def crop_risks(
    *,
    total_rain: float,
    max_temp: float,
    min_temp: float,
    avg_temp: float,
    avg_humidity: float,
    avg_wind: float,
) -> list[str]:
    risks: list[str] = []

    if total_rain < 15:
        risks.append("Critical drought - irrigation urgent")
    elif total_rain < 25:
        risks.append("Moderate drought stress - monitor soil moisture")

    if max_temp > 40:
        risks.append("Critical heat stress - crop damage likely (>40°C)")
    elif max_temp > 38:
        risks.append("Severe heat stress - reduce transplanting activity")
    elif max_temp > 35:
        risks.append("Moderate heat stress - increase irrigation frequency")

    if min_temp < 0:
        risks.append("Frost risk - frost protection measures needed")
    elif min_temp < 5 and avg_temp < 15:
        risks.append("Cold stress - crop development slowed")

    if avg_humidity > 85 and 22 < avg_temp < 32:
        risks.append("Critical fungal disease risk - apply preventive fungicides")
    elif avg_humidity > 75 and avg_temp > 25:
        risks.append("High pest/disease risk - increase monitoring")

    if total_rain > 200:
        risks.append("Waterlogging risk - flooding possible, ensure drainage")
    elif total_rain > 150:
        risks.append("Excess water stress - monitor for waterlogging")

    if avg_wind > 12:
        risks.append("High wind risk - structural crop damage possible")
    elif avg_wind > 10:
        risks.append("Moderate wind risk - monitor young plants")

    return risks


class CropHealthTool:
    """Agro-meteorological crop health for a province over a trailing window."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        base_url: str,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._today = today

    def __call__(self, region: str, days_back: int = 30) -> dict[str, Any]:
        try:
            return self._fetch(region, int(days_back))
        except (DataSourceError, UnknownLocationError, KeyError, TypeError, ValueError) as e:
            logger.warning("Crop health lookup failed", extra={"region": region, "error": str(e)})
            return error_marker("Crop health data", e, region=region)

    def _fetch(self, region: str, days_back: int) -> dict[str, Any]:
        loc = lookup(PROVINCES, region, kind="region")
        if days_back < 1:
            raise ValueError("days_back must be positive")

        end = self._today()
        start = end - timedelta(days=days_back)
        payload = get_json(
            self._client,
            f"{self._base_url}/temporal/daily/point",
            params={
                "parameters": ",".join(_PARAMETERS),
                "community": "AG",
                "longitude": loc.lon,
                "latitude": loc.lat,
                "start": start.strftime("%Y%m%d"),
                "end": end.strftime("%Y%m%d"),
                "format": "JSON",
            },
            source="NASA POWER",
        )
        series = payload["properties"]["parameter"]

        def values(key: str) -> list[Any]:
            return list(series[key].values())

        temps = valid_values(values("T2M"), -50, 60, inclusive=False)
        max_temps = valid_values(values("T2M_MAX"), -50, 60, inclusive=False)
        min_temps = valid_values(values("T2M_MIN"), -50, 60, inclusive=False)
        rain = valid_values(values("PRECTOTCORR"), 0, 500)
        humidity = valid_values(values("RH2M"), 0, 100)
        wind = valid_values(values("WS2M"), 0, 50)
        solar = valid_values(values("ALLSKY_SFC_SW_DWN"), 0, 45)

        avg_temp = mean_or(temps, 25.0)
        max_temp = max(max_temps) if max_temps else 35.0
        min_temp = min(min_temps) if min_temps else 15.0
        total_rain = sum(rain)
        avg_humidity = mean_or(humidity, 60.0)
        avg_wind = mean_or(wind, 3.0)
        avg_solar = mean_or(solar, 20.0)
        gdd = sum(max(0.0, t - GDD_BASE_C) for t in temps)

        score = health_score(
            avg_temp=avg_temp, gdd=gdd, total_rain=total_rain, avg_humidity=avg_humidity, avg_solar=avg_solar
        )
        risks = crop_risks(
            total_rain=total_rain,
            max_temp=max_temp,
            min_temp=min_temp,
            avg_temp=avg_temp,
            avg_humidity=avg_humidity,
            avg_wind=avg_wind,
        )

        return {
            "region": loc.name,
            "coordinates": {"lat": loc.lat, "lon": loc.lon},
            "period": {"start": start.isoformat(), "end": end.isoformat(), "days": days_back},
            "metrics": {
                "temperature": {
                    "average": round(avg_temp, 2),
                    "maximum": round(max_temp, 2),
                    "minimum": round(min_temp, 2),
                    "unit": "°C",
                },
                "rainfall": {
                    "total": round(total_rain, 2),
                    "daily_average": round(total_rain / days_back, 2),
                    "unit": "mm",
                },
                "humidity": {"average": round(avg_humidity, 2), "unit": "%"},
                "wind": {"average": round(avg_wind, 2), "unit": "m/s"},
                "solarRadiation": {"average": round(avg_solar, 2), "unit": "MJ/m²/day"},
                "growingDegreeDays": round(gdd, 2),
            },
            "cropHealthScore": score,
            "condition": condition_for(score),
            "risks": risks or ["No significant risks detected"],
            "recommendations": (
                ["Consider supplemental irrigation", "Monitor crop stress indicators", "Adjust fertilization schedule"]
                if score < 50
                else ["Maintain current practices", "Continue monitoring"]
            ),
            "dataQuality": "High",
            "source": "NASA POWER Agricultural Meteorology",
        }
