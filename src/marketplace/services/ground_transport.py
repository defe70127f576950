from __future__ import annotations

import math

from marketplace.services import geo
from marketplace.services.money import ZERO, round2, to_decimal
from marketplace.services.types import (
    GeoPoint,
    GroundTransportSettings,
    PricingFailure,
    PricingFailureReason,
    SettingsLoaded,
    SettingsLoading,
    SettingsState,
    TransportQuote,
    TransportTier,
)

TIER_NAMES: dict[str, str] = {
    "standard": "Standard Ground Transport",
    "private": "Private VIP Transport",
}


def price_ground_transport(
    distance_km: float,
    tier: str,
    has_companion: bool,
    settings: GroundTransportSettings,
) -> TransportQuote | PricingFailure:
    if not math.isfinite(distance_km) or distance_km < 0:
        return PricingFailure(PricingFailureReason.INVALID_INPUT, "Distance must be non-negative")
    if tier not in TIER_NAMES:
        return PricingFailure(PricingFailureReason.INVALID_INPUT, f"Unknown transport tier: {tier}")
    if settings.estimated_speed_kmh <= 0:
        return PricingFailure(
            PricingFailureReason.CONFIGURATION_UNAVAILABLE,
            "Ground transport average speed must be positive",
        )
    if distance_km > settings.max_ground_distance_km:
        return PricingFailure(
            PricingFailureReason.DISTANCE_EXCEEDS_LIMIT,
            f"Ground transport is limited to {settings.max_ground_distance_km:g} km",
        )

    distance = to_decimal(distance_km)
    multiplier = (
        settings.private_multiplier if tier == "private" else settings.standard_multiplier
    )
    base_shipping_price = round2((settings.base_price + distance * settings.price_per_km) * multiplier)

    companion_fee = ZERO
    if has_companion:
        companion_fee = round2(
            min(
                settings.companion_base_fee + distance * settings.companion_per_km,
                settings.companion_max_fee,
            )
        )

    return TransportQuote(
        distance_km=round(distance_km),
        distance_miles=round(geo.km_to_miles(distance_km)),
        estimated_time=geo.estimate_travel_time(distance_km, settings.estimated_speed_kmh),
        tier=tier,
        tier_name=TIER_NAMES[tier],
        has_companion=has_companion,
        base_shipping_price=base_shipping_price,
        companion_fee=companion_fee,
        total_price=round2(base_shipping_price + companion_fee),
    )


def compute_ground_quote(
    origin: GeoPoint,
    destination: GeoPoint,
    tier: TransportTier,
    has_companion: bool,
    settings_state: SettingsState,
) -> TransportQuote | PricingFailure:
    if isinstance(settings_state, SettingsLoading):
        return PricingFailure(
            PricingFailureReason.CONFIGURATION_UNAVAILABLE,
            "Ground transport settings are still loading",
        )
    if not isinstance(settings_state, SettingsLoaded):
        return PricingFailure(
            PricingFailureReason.CONFIGURATION_UNAVAILABLE,
            f"Ground transport settings unavailable: {settings_state.reason}",
        )

    settings = settings_state.settings
    if not settings.enabled:
        return PricingFailure(
            PricingFailureReason.CONFIGURATION_UNAVAILABLE, "Ground transport is disabled"
        )
    if not geo.is_valid_point(origin) or not geo.is_valid_point(destination):
        return PricingFailure(PricingFailureReason.INVALID_INPUT, "Coordinates are out of range")

    return price_ground_transport(
        geo.distance_km(origin, destination), tier, has_companion, settings
    )
