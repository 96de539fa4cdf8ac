"""Weather conditions and agricultural weather risk (OpenWeatherMap)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from foodguard.logging import get_logger
from foodguard.regions import DISTRICTS, UnknownLocationError, lookup
from foodguard.tools.base import DataSourceError, error_marker, get_json, mean_or, valid_values

logger = get_logger(__name__)

NAME = "get_weather_data"
DESCRIPTION = (
    "Fetches real-time weather conditions and 5-day forecast for Pakistani districts using "
    "OpenWeatherMap. Critical for predicting agricultural yield and crop stress."
)
SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "district": {
            "type": "string",
            "description": "The district name (e.g., 'Lahore', 'Karachi', 'Multan', 'Faisalabad', 'Peshawar', 'Quetta')",
        }
    },
    "required": ["district"],
}

# Forecast slots are 3 hours wide.
_SLOTS_PER_DAY = 8


def _rain(item: dict[str, Any]) -> float:
    value = (item.get("rain") or {}).get("3h") or 0
    return float(value) if 0 <= value <= 500 else 0.0


def assess_agricultural_risk(temp: float, humidity: float, rainfall_24h: float) -> tuple[str, list[str]]:
    """Bucket current conditions into a crop risk level with the contributing factors."""

    risk = "Low"
    factors: list[str] = []

    if temp > 38 or temp < 5:
        risk = "High"
        factors.append(f"Critical temperature: {temp}°C")
    elif temp > 35 or temp < 10:
        risk = "Medium"
        factors.append(f"Temperature stress: {temp}°C")

    if rainfall_24h > 100:
        risk = "High"
        factors.append("Excessive rainfall: flooding risk")
    elif rainfall_24h > 50:
        if risk == "Low":
            risk = "Medium"
        factors.append("Heavy rainfall: disease risk")
    elif rainfall_24h < 2 and humidity < 30:
        if risk != "High":
            risk = "Medium"
        factors.append("Drought conditions: irrigation critical")

    if humidity > 85:
        if risk == "Low":
            risk = "Medium"
        factors.append("High humidity: disease/pest risk")
    elif humidity < 20:
        if risk == "Low":
            risk = "Medium"
        factors.append("Very low humidity: water stress")

    return risk, factors


def _crop_stress(temp: float) -> str:
    if temp > 38:
        return "Critical heat stress"
    if temp > 35:
        return "Moderate heat stress"
    if temp < 10:
        return "Cold stress risk"
    return "Normal conditions"


def _pest_risk(temp: float, humidity: float) -> str:
    if humidity > 75 and 25 < temp < 35:
        return "High"
    if humidity > 85:
        return "Critical"
    return "Low"


class WeatherTool:
    """Current weather plus forecast aggregates for a district."""

    def __init__(self, client: httpx.Client, *, api_key: str | None, base_url: str) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def __call__(self, district: str) -> dict[str, Any]:
        try:
            return self._fetch(district)
        except (DataSourceError, UnknownLocationError, KeyError, IndexError, TypeError) as e:
            logger.warning("Weather lookup failed", extra={"district": district, "error": str(e)})
            return error_marker("Weather data", e, district=district)

    def _fetch(self, district: str) -> dict[str, Any]:
        loc = lookup(DISTRICTS, district, kind="district")
        if not self._api_key:
            raise DataSourceError("OpenWeatherMap API key is not configured")

        params = {"lat": loc.lat, "lon": loc.lon, "appid": self._api_key, "units": "metric"}
        current = get_json(self._client, f"{self._base_url}/weather", params=params, source="Weather")
        forecast = get_json(self._client, f"{self._base_url}/forecast", params=params, source="Weather forecast")

        slots: list[dict[str, Any]] = forecast["list"]
        rainfall_24h = sum(_rain(item) for item in slots[:_SLOTS_PER_DAY])
        rainfall_window = sum(_rain(item) for item in slots)
        avg_temp = mean_or(valid_values((s["main"]["temp"] for s in slots), -50, 60, inclusive=False), 25.0)
        avg_humidity = mean_or(valid_values((s["main"]["humidity"] for s in slots), 0, 100), 60.0)

        main = current["main"]
        temp = main["temp"]
        humidity = main["humidity"]
        condition = current["weather"][0]
        risk, factors = assess_agricultural_risk(temp, humidity, rainfall_24h)

        return {
            "district": district,
            "coordinates": {"lat": loc.lat, "lon": loc.lon},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "current": {
                "temperature": temp,
                "feelsLike": main.get("feels_like"),
                "humidity": humidity,
                "pressure": main.get("pressure"),
                "windSpeed": current.get("wind", {}).get("speed"),
                "windDirection": current.get("wind", {}).get("deg"),
                "cloudiness": current.get("clouds", {}).get("all"),
                "visibility": current["visibility"] / 1000 if "visibility" in current else None,
                "description": condition.get("description"),
                "mainCondition": condition.get("main"),
            },
            "forecast": {
                "rainfall24h": round(rainfall_24h, 2),
                "rainfall5d": round(rainfall_window, 2),
                "avgTemp5Day": round(avg_temp, 2),
                "avgHumidity5Day": round(avg_humidity, 2),
                "summary": (
                    f"{condition.get('main')} conditions with "
                    f"{'significant' if rainfall_24h > 10 else 'minimal'} rainfall expected"
                ),
            },
            "agriculturalImpact": {
                "riskLevel": risk,
                "riskFactors": factors or ["Weather conditions favorable for crops"],
                "cropStress": _crop_stress(temp),
                "irrigationNeeded": rainfall_24h < 5 and humidity < 40,
                "pestRisk": _pest_risk(temp, humidity),
            },
            "dataQuality": "High",
            "source": "OpenWeatherMap API",
        }
