from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.cache import cache
from django.test import Client

from marketplace.models import AddOn, GroundTransportConfig, Pet
from marketplace.services.types import GroundTransportSettings


@pytest.fixture(autouse=True)
def _clear_cache() -> None:
    cache.clear()


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def ground_settings() -> GroundTransportSettings:
    return GroundTransportSettings(
        enabled=True,
        base_price=Decimal("50"),
        price_per_km=Decimal("0.05"),
        price_per_mile=Decimal("0.0805"),
        standard_multiplier=Decimal("1.0"),
        private_multiplier=Decimal("1.5"),
        companion_base_fee=Decimal("20"),
        companion_per_km=Decimal("0.02"),
        companion_max_fee=Decimal("100"),
        max_ground_distance_km=5000.0,
        estimated_speed_kmh=80.0,
    )


@pytest.fixture
def ground_config(db) -> GroundTransportConfig:
    return GroundTransportConfig.objects.create(
        base_price=Decimal("50.00"),
        price_per_km=Decimal("0.0500"),
        price_per_mile=Decimal("0.0805"),
        standard_multiplier=Decimal("1.000"),
        private_multiplier=Decimal("1.500"),
        companion_base_fee=Decimal("20.00"),
        companion_per_km=Decimal("0.0200"),
        companion_max_fee=Decimal("100.00"),
        max_ground_distance_km=5000.0,
        estimated_speed_kmh=80.0,
    )


@pytest.fixture
def pet(db) -> Pet:
    return Pet.objects.create(
        name="Luna",
        pet_type="cat",
        breed="Maine Coon",
        adoption_fee=Decimal("1000.00"),
        canonical_key="LUNA|CAT|MAINE COON|LOS ANGELES, CALIFORNIA",
        location="Los Angeles, California",
        origin_country_id="usa",
        origin_region_id="us-ca",
    )


@pytest.fixture
def add_ons(db) -> list[AddOn]:
    return [
        AddOn.objects.create(code="pedigree", name="Pedigree Certificate", price=Decimal("75.00")),
        AddOn.objects.create(code="hcm-testing", name="HCM Gene Testing", price=Decimal("150.00")),
    ]
