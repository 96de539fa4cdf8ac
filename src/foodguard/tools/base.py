"""Shared helpers for data tools."""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from foodguard.config import Settings


class DataSourceError(RuntimeError):
    """An upstream data source returned an unusable response."""


def error_marker(what: str, error: object, **context: Any) -> dict[str, Any]:
    """Build the payload a tool returns instead of raising.

    Args:
        what: Human label of the data, e.g. ``"Weather data"``.
        error: The captured failure.
        **context: Identifiers the tool was called with.
    """

    return {"error": f"{what} unavailable: {error}", **context, "dataQuality": "Low"}


def build_http_client(settings: Settings, *, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """HTTP client shared by the data tools of one registry."""

    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_s),
        headers={"User-Agent": settings.http_user_agent},
        follow_redirects=True,
        transport=transport,
    )


def get_json(client: httpx.Client, url: str, *, source: str, params: dict[str, Any] | None = None) -> Any:
    """GET a JSON document, turning HTTP failures into :class:`DataSourceError`."""

    try:
        resp = client.get(url, params=params)
    except httpx.HTTPError as e:
        raise DataSourceError(f"{source} request failed: {e}") from e
    if resp.status_code >= 400:
        raise DataSourceError(f"{source} API error: {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise DataSourceError(f"{source} returned invalid JSON") from e


def valid_values(values: Iterable[Any], low: float, high: float, *, inclusive: bool = True) -> list[float]:
    """Numeric values inside a plausibility window; sentinels such as -999 are dropped."""

    out: list[float] = []
    for v in values:
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            continue
        if inclusive and low <= v <= high:
            out.append(float(v))
        elif not inclusive and low < v < high:
            out.append(float(v))
    return out


def mean_or(values: list[float], default: float) -> float:
    return sum(values) / len(values) if values else default
