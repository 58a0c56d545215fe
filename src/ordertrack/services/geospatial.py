"""Geospatial helper functions."""

from __future__ import annotations

import math
import re
from typing import Any

from shapely.geometry import LineString, Point

EARTH_RADIUS_KM = 6371.0

_CARDINALS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
_NUMBER = r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?"
_WKT_POINT = re.compile(rf"POINT\s*\(\s*({_NUMBER})\s+({_NUMBER})\s*\)", re.IGNORECASE)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Great-circle distance in meters between two (lat, lon) pairs."""

    return haversine_km(a[0], a[1], b[0], b[1]) * 1000.0


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the initial bearing from (lat1, lon1) to (lat2, lon2)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def cardinal_direction(bearing: float) -> str:
    """Map a bearing in degrees to one of 16 compass points."""

    return _CARDINALS[round(bearing / 22.5) % 16]


def is_valid_lat_lng(lat: Any, lng: Any) -> bool:
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def is_within_geofence(point: tuple[float, float], center: tuple[float, float], radius_m: float) -> bool:
    return haversine_m(point, center) <= radius_m


def project_onto_segment(
    point: tuple[float, float],
    start: tuple[float, float],
    end: tuple[float, float],
) -> tuple[float, tuple[float, float]]:
    """Project a (lat, lon) point onto the segment start-end in planar lat/lon space.

    Returns the fraction along the segment (clamped to [0, 1]) and the projected point.
    """

    if start == end:
        return 0.0, start
    # shapely works in (x, y) = (lon, lat)
    segment = LineString([(start[1], start[0]), (end[1], end[0])])
    fraction = segment.project(Point(point[1], point[0]), normalized=True)
    projected = segment.interpolate(fraction, normalized=True)
    return float(fraction), (projected.y, projected.x)


def parse_location(value: Any) -> tuple[float, float]:
    """Parse a location into a (lat, lon) tuple.

    Accepts PostGIS WKT (``SRID=4326;POINT(lng lat)`` or ``POINT(lng lat)``),
    ``{"latitude": .., "longitude": ..}`` mappings and GeoJSON points.
    Raises ``ValueError`` for anything else or for out-of-range coordinates.
    """

    if isinstance(value, str):
        normalized = value.strip()
        if ";" in normalized:
            normalized = normalized.split(";", 1)[1]
        match = _WKT_POINT.search(normalized)
        if not match:
            raise ValueError(f"Invalid PostGIS POINT format: {value}")
        lng, lat = float(match.group(1)), float(match.group(2))
    elif isinstance(value, dict) and "latitude" in value and "longitude" in value:
        lat, lng = value["latitude"], value["longitude"]
    elif isinstance(value, dict) and value.get("type") == "Point":
        coordinates = value.get("coordinates") or []
        if len(coordinates) < 2:
            raise ValueError("Invalid GeoJSON: coordinates array must have at least 2 elements")
        lng, lat = coordinates[0], coordinates[1]
    else:
        raise ValueError(f"Unsupported location format: {value!r}")

    if not is_valid_lat_lng(lat, lng):
        raise ValueError(f"Coordinates out of range (lat -90..90, lng -180..180): lat={lat}, lng={lng}")
    return float(lat), float(lng)
