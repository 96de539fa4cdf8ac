"""Data tools available to the reasoning loop."""

from __future__ import annotations

import random

import httpx

from foodguard.config import Settings
from foodguard.tools import crop_health, history, market, production, warehouse, weather
from foodguard.tools.base import DataSourceError, build_http_client, error_marker
from foodguard.tools.registry import FunctionTool, Tool, ToolRegistry, ToolResult

TOOL_DISPLAY_NAMES: dict[str, str] = {
    weather.NAME: "WEATHER DATA",
    market.NAME: "MARKET PRICES",
    warehouse.NAME: "WAREHOUSE INVENTORY",
    production.NAME: "PRODUCTION FORECAST",
    crop_health.NAME: "CROP HEALTH STATUS",
    history.NAME: "HISTORICAL DATA",
}


def display_label(tool_name: str, labels: dict[str, str] | None = None) -> str:
    """Human-readable label for a tool, falling back to the upper-cased name."""

    table = TOOL_DISPLAY_NAMES if labels is None else labels
    return table.get(tool_name) or tool_name.upper()


def build_registry(
    settings: Settings,
    *,
    http_client: httpx.Client | None = None,
    rng: random.Random | None = None,
) -> ToolRegistry:
    """Create a registry with every data tool.

    Args:
        settings: Application settings (data source URLs and keys).
        http_client: Client for the live data sources; one is built from settings if omitted.
        rng: Random source for the simulated tools.
    """

    client = http_client or build_http_client(settings)
    rng = rng or random.Random()

    registry = ToolRegistry()
    registry.register_function(
        weather.NAME,
        weather.WeatherTool(client, api_key=settings.openweather_api_key, base_url=settings.openweather_base_url),
        weather.DESCRIPTION,
        weather.SCHEMA,
    )
    registry.register_function(
        market.NAME,
        market.MarketPriceTool(client, base_url=settings.worldbank_base_url),
        market.DESCRIPTION,
        market.SCHEMA,
    )
    registry.register_function(
        warehouse.NAME,
        warehouse.WarehouseStockTool(rng),
        warehouse.DESCRIPTION,
        warehouse.SCHEMA,
    )
    registry.register_function(
        production.NAME,
        production.ProductionForecastTool(rng),
        production.DESCRIPTION,
        production.SCHEMA,
    )
    registry.register_function(
        history.NAME,
        history.HistoricalShortageTool(rng),
        history.DESCRIPTION,
        history.SCHEMA,
    )
    registry.register_function(
        crop_health.NAME,
        crop_health.CropHealthTool(client, base_url=settings.nasa_power_base_url),
        crop_health.DESCRIPTION,
        crop_health.SCHEMA,
    )
    return registry


__all__ = [
    "TOOL_DISPLAY_NAMES",
    "DataSourceError",
    "FunctionTool",
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "build_http_client",
    "build_registry",
    "display_label",
    "error_marker",
]
