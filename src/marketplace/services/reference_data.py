"""Static country, region and air cargo lane tables.

The CSV files under ``marketplace/data`` are read once per process and
exposed as immutable values.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import polars as pl

from marketplace.services.types import AirCargoCountry, Country, Region

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@lru_cache(maxsize=1)
def world_countries() -> tuple[Country, ...]:
    countries = pl.read_csv(DATA_DIR / "countries.csv")
    regions = pl.read_csv(
        DATA_DIR / "regions.csv",
        schema_overrides={"latitude": pl.Float64, "longitude": pl.Float64},
    )

    regions_by_country: dict[str, list[Region]] = defaultdict(list)
    for row in regions.iter_rows(named=True):
        regions_by_country[row["country_id"]].append(
            Region(
                id=row["id"],
                name=row["name"],
                latitude=row["latitude"],
                longitude=row["longitude"],
            )
        )

    return tuple(
        Country(
            id=row["id"],
            name=row["name"],
            flag=row["flag"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            regions=tuple(regions_by_country.get(row["id"], ())),
        )
        for row in countries.iter_rows(named=True)
    )


def get_country(country_id: str) -> Country | None:
    return next((country for country in world_countries() if country.id == country_id), None)


def get_region(country_id: str, region_id: str) -> Region | None:
    country = get_country(country_id)
    if country is None:
        return None
    return next((region for region in country.regions if region.id == region_id), None)


def match_location_text(location: str) -> list[tuple[Country, Region]]:
    """Return every region whose name appears in a free-text location.

    A match whose name is contained in a longer matched name is dropped, so
    "Baja California Sur" does not also yield "California". If the text names
    a country that has a matching region, matches are restricted to that
    country. Callers decide what to do with zero or several results.
    """
    text = location.lower()
    if not text.strip():
        return []

    named_countries = {country.id for country in world_countries() if country.name.lower() in text}
    matches = [
        (country, region)
        for country in world_countries()
        for region in country.regions
        if region.name.lower() in text
    ]
    in_named_country = [
        (country, region) for country, region in matches if country.id in named_countries
    ]
    if in_named_country:
        matches = in_named_country

    names = {region.name.lower() for _, region in matches}
    return [
        (country, region)
        for country, region in matches
        if not any(
            region.name.lower() != other and region.name.lower() in other for other in names
        )
    ]


@lru_cache(maxsize=1)
def air_cargo_countries() -> tuple[AirCargoCountry, ...]:
    frame = pl.read_csv(DATA_DIR / "air_cargo_countries.csv", schema_overrides={"price": pl.Utf8})
    return tuple(
        AirCargoCountry(
            id=row["id"],
            label=row["label"],
            region=row["region"],
            price=Decimal(row["price"]),
        )
        for row in frame.iter_rows(named=True)
    )


def get_air_cargo_country(country_id: str) -> AirCargoCountry | None:
    return next((entry for entry in air_cargo_countries() if entry.id == country_id), None)


def air_cargo_regions() -> list[str]:
    seen: dict[str, None] = {}
    for entry in air_cargo_countries():
        seen.setdefault(entry.region, None)
    return list(seen)


def countries_by_region(region: str) -> list[AirCargoCountry]:
    return [entry for entry in air_cargo_countries() if entry.region == region]
