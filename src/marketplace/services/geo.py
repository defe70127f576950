from __future__ import annotations

import math

from marketplace.services.types import GeoPoint

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2.0) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(origin: GeoPoint, destination: GeoPoint) -> float:
    return haversine_km(
        origin.latitude, origin.longitude, destination.latitude, destination.longitude
    )


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


def is_valid_point(point: GeoPoint) -> bool:
    return (
        math.isfinite(point.latitude)
        and math.isfinite(point.longitude)
        and -90.0 <= point.latitude <= 90.0
        and -180.0 <= point.longitude <= 180.0
    )


def estimate_travel_time(distance_km: float, speed_kmh: float) -> str:
    """Render the drive time for ``distance_km`` at ``speed_kmh`` as days and hours.

    Any positive distance renders as at least one hour.
    """
    if speed_kmh <= 0:
        raise ValueError("speed_kmh must be positive")

    hours = distance_km / speed_kmh
    days = math.floor(hours / 24)
    remaining_hours = math.floor(hours % 24 + 0.5)
    if remaining_hours == 24:
        days += 1
        remaining_hours = 0
    if days == 0 and remaining_hours == 0 and distance_km > 0:
        remaining_hours = 1

    if days == 0:
        return _plural(remaining_hours, "hour")
    if remaining_hours == 0:
        return _plural(days, "day")
    return f"{_plural(days, 'day')}, {_plural(remaining_hours, 'hour')}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"
