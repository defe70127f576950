from __future__ import annotations

import pytest

from marketplace.services.geo import (
    distance_km,
    estimate_travel_time,
    is_valid_point,
    km_to_miles,
)
from marketplace.services.types import GeoPoint

LOS_ANGELES = GeoPoint(latitude=34.05, longitude=-118.24)
NEW_YORK = GeoPoint(latitude=40.71, longitude=-74.01)


def test_distance_between_los_angeles_and_new_york() -> None:
    assert distance_km(LOS_ANGELES, NEW_YORK) == pytest.approx(3936, abs=1.0)


def test_distance_is_symmetric() -> None:
    pairs = [
        (LOS_ANGELES, NEW_YORK),
        (GeoPoint(51.5, -0.12), GeoPoint(-33.87, 151.21)),
        (GeoPoint(0.0, 179.9), GeoPoint(0.0, -179.9)),
    ]
    for origin, destination in pairs:
        assert distance_km(origin, destination) == pytest.approx(
            distance_km(destination, origin), abs=1e-6
        )


def test_distance_to_self_is_zero() -> None:
    assert distance_km(NEW_YORK, NEW_YORK) == 0


def test_km_to_miles() -> None:
    assert km_to_miles(100) == pytest.approx(62.1371)


@pytest.mark.parametrize(
    ("point", "expected"),
    [
        (GeoPoint(90.0, 180.0), True),
        (GeoPoint(-90.0, -180.0), True),
        (GeoPoint(90.5, 0.0), False),
        (GeoPoint(0.0, 181.0), False),
        (GeoPoint(float("nan"), 0.0), False),
    ],
)
def test_is_valid_point(point: GeoPoint, expected: bool) -> None:
    assert is_valid_point(point) is expected


@pytest.mark.parametrize(
    ("distance", "expected"),
    [
        (0, "0 hours"),
        (10, "1 hour"),
        (160, "2 hours"),
        (1920, "1 day"),
        (1900, "1 day"),
        (3936, "2 days, 1 hour"),
        (4160, "2 days, 4 hours"),
    ],
)
def test_estimate_travel_time(distance: float, expected: str) -> None:
    assert estimate_travel_time(distance, 80) == expected


def test_estimate_travel_time_rejects_non_positive_speed() -> None:
    with pytest.raises(ValueError):
        estimate_travel_time(100, 0)
