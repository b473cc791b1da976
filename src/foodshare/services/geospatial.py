"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..errors import InvalidLocation
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres, rounded to two decimals."""

    return round(haversine_km(a.latitude, a.longitude, b.latitude, b.longitude), 2)


def validate_coordinate(latitude: float | None, longitude: float | None) -> Coordinate:
    """Build a Coordinate, rejecting missing or out-of-range values."""

    if latitude is None or longitude is None:
        raise InvalidLocation("Latitude and longitude are both required.")
    try:
        coordinate = Coordinate(float(latitude), float(longitude))
    except (TypeError, ValueError) as exc:
        raise InvalidLocation(f"Coordinates must be numeric, got ({latitude!r}, {longitude!r}).") from exc
    ensure_valid(coordinate)
    return coordinate


def ensure_valid(coordinate: Coordinate) -> Coordinate:
    if math.isnan(coordinate.latitude) or math.isnan(coordinate.longitude) or not coordinate.is_valid():
        raise InvalidLocation(
            f"Coordinate ({coordinate.latitude}, {coordinate.longitude}) is outside the valid range."
        )
    return coordinate


def is_within_radius(center: Coordinate, point: Coordinate, radius_km: float) -> bool:
    """Return True if ``point`` lies within ``radius_km`` of ``center`` (boundary inclusive)."""

    return distance(ensure_valid(center), ensure_valid(point)) <= radius_km


def format_distance(km: float) -> str:
    """Human readable distance, metres below one kilometre."""

    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"
