"""Reference geography for Pakistani districts and provinces."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    name: str
    lat: float
    lon: float


DISTRICTS: dict[str, Location] = {
    "lahore": Location("Lahore", 31.5204, 74.3587),
    "karachi": Location("Karachi", 24.8607, 67.0011),
    "multan": Location("Multan", 30.1575, 71.5249),
    "faisalabad": Location("Faisalabad", 31.4504, 73.1350),
    "rawalpindi": Location("Rawalpindi", 33.5651, 73.0169),
    "peshawar": Location("Peshawar", 34.0151, 71.5249),
    "quetta": Location("Quetta", 30.1798, 66.9750),
    "islamabad": Location("Islamabad", 33.6844, 73.0479),
    "gujranwala": Location("Gujranwala", 32.1877, 74.1945),
    "sialkot": Location("Sialkot", 32.4945, 74.5229),
    "sargodha": Location("Sargodha", 32.0836, 72.6711),
    "bahawalpur": Location("Bahawalpur", 29.3956, 71.6722),
    "sukkur": Location("Sukkur", 27.7050, 68.8578),
    "larkana": Location("Larkana", 27.5590, 68.2120),
    "hyderabad": Location("Hyderabad", 25.3960, 68.3578),
    "mardan": Location("Mardan", 34.1987, 72.0402),
}

PROVINCES: dict[str, Location] = {
    "punjab": Location("Punjab Province", 31.1471, 72.7869),
    "sindh": Location("Sindh Province", 25.8943, 68.5247),
    "kpk": Location("Khyber Pakhtunkhwa", 34.9526, 72.3311),
    "balochistan": Location("Balochistan Province", 28.4894, 65.0961),
    "gilgit": Location("Gilgit-Baltistan", 35.9208, 74.3082),
    "kashmir": Location("Azad Kashmir", 33.7782, 73.9761),
}

# Regions offered for selection by the dashboard, in display order.
DASHBOARD_REGIONS: tuple[str, ...] = (
    "Lahore",
    "Karachi",
    "Multan",
    "Peshawar",
    "Quetta",
    "Islamabad",
    "Faisalabad",
    "Rawalpindi",
)

DEFAULT_SELECTION: tuple[str, ...] = ("Lahore", "Karachi", "Multan")


class UnknownLocationError(KeyError):
    """Raised when an identifier is not in a reference table."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown location"


def lookup(table: dict[str, Location], identifier: str, *, kind: str) -> Location:
    """Case-insensitive lookup that names the valid identifiers on failure."""

    try:
        return table[identifier.strip().lower()]
    except KeyError:
        available = ", ".join(table)
        raise UnknownLocationError(f"Unknown {kind}: {identifier}. Available: {available}") from None
