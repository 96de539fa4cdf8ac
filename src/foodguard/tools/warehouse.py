"""Regional warehouse stock levels.

Simulated until a warehouse management system (PASSCO or the provincial food departments)
is integrated; results always carry ``dataQuality: "Low"``.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any

from foodguard.logging import get_logger
from foodguard.tools.base import error_marker

logger = get_logger(__name__)

NAME = "get_warehouse_stock"
DESCRIPTION = (
    "Checks current stock levels in regional warehouses. Low stock indicates potential shortage. "
    "NOTE: Currently using simulated data - requires integration with actual warehouse systems."
)
SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "region": {
            "type": "string",
            "description": "The region to check warehouse stocks (e.g., 'Punjab', 'Sindh', 'KPK', 'Balochistan')",
        }
    },
    "required": ["region"],
}

# metric tons
REGION_CAPACITY: dict[str, int] = {"punjab": 50000, "sindh": 35000, "kpk": 20000, "balochistan": 15000}
DEFAULT_CAPACITY = 25000

# Share of capacity allotted to each commodity.
_COMMODITY_SPLIT = (("wheat", 0.4), ("rice", 0.3), ("corn", 0.2), ("other", 0.1))


def stock_status(utilization_percent: float) -> tuple[str, str | None]:
    """Status label and optional alert for a utilisation level."""

    if utilization_percent < 30:
        return "Low - Potential Shortage Risk", "Stock levels below optimal - consider increasing reserves"
    if utilization_percent > 85:
        return "Near Capacity - Storage Constraints", "Warehouse near capacity - plan for distribution"
    return "Normal", None


class WarehouseStockTool:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def __call__(self, region: str) -> dict[str, Any]:
        try:
            return self._stock(region)
        except (AttributeError, TypeError) as e:
            logger.warning("Warehouse stock lookup failed", extra={"region": region, "error": str(e)})
            return error_marker("Warehouse stock data", e, region=region)

    def _stock(self, region: str) -> dict[str, Any]:
        capacity = REGION_CAPACITY.get(region.strip().lower(), DEFAULT_CAPACITY)
        utilization = 30 + self._rng.random() * 60

        stocks: dict[str, dict[str, Any]] = {}
        total = 0
        for commodity, share in _COMMODITY_SPLIT:
            amount = int(capacity * share * (utilization / 100))
            stocks[commodity] = {"amount": amount, "unit": "metric tons"}
            total += amount
        stocks["total"] = {"amount": total, "unit": "metric tons"}

        utilization_percent = total / capacity * 100
        status, alert = stock_status(utilization_percent)

        return {
            "region": region,
            "stocks": stocks,
            "capacity": {
                "total": capacity,
                "utilized": total,
                "utilizationPercent": round(utilization_percent, 2),
                "available": capacity - total,
            },
            "stockStatus": status,
            "alert": alert,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "note": "Simulated data - integrate with actual warehouse management system",
            "dataQuality": "Low",
        }
