from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError

from marketplace.models import GroundTransportConfig
from marketplace.services.money import to_decimal
from marketplace.services.types import (
    GroundTransportSettings,
    SettingsFailed,
    SettingsLoaded,
    SettingsState,
)

logger = logging.getLogger(__name__)

CACHE_KEY = "ground-transport-settings"


class GroundTransportSettingsProvider:
    """Reads the active ground transport configuration row.

    Successful reads are cached; failures are not, so the next request
    retries the database.
    """

    def __init__(self) -> None:
        self.ttl_seconds = settings.GROUND_TRANSPORT_SETTINGS_CACHE_TTL_SECONDS

    def get_state(self) -> SettingsState:
        cached = cache.get(CACHE_KEY)
        if cached:
            return SettingsLoaded(self._from_cache(cached))

        try:
            config = GroundTransportConfig.objects.filter(is_active=True).first()
        except DatabaseError as exc:
            logger.warning("Could not load ground transport settings: %s", exc)
            return SettingsFailed("database error")

        if config is None:
            return SettingsFailed("not configured")

        loaded = self._from_model(config)
        cache.set(CACHE_KEY, self._to_cache(loaded), timeout=self.ttl_seconds)
        return SettingsLoaded(loaded)

    @staticmethod
    def invalidate() -> None:
        cache.delete(CACHE_KEY)

    @staticmethod
    def _from_model(config: GroundTransportConfig) -> GroundTransportSettings:
        return GroundTransportSettings(
            enabled=config.is_enabled,
            base_price=to_decimal(config.base_price),
            price_per_km=to_decimal(config.price_per_km),
            price_per_mile=to_decimal(config.price_per_mile),
            standard_multiplier=to_decimal(config.standard_multiplier),
            private_multiplier=to_decimal(config.private_multiplier),
            companion_base_fee=to_decimal(config.companion_base_fee),
            companion_per_km=to_decimal(config.companion_per_km),
            companion_max_fee=to_decimal(config.companion_max_fee),
            max_ground_distance_km=float(config.max_ground_distance_km),
            estimated_speed_kmh=float(config.estimated_speed_kmh),
        )

    @staticmethod
    def _to_cache(loaded: GroundTransportSettings) -> dict[str, str | bool | float]:
        return {
            "enabled": loaded.enabled,
            "base_price": str(loaded.base_price),
            "price_per_km": str(loaded.price_per_km),
            "price_per_mile": str(loaded.price_per_mile),
            "standard_multiplier": str(loaded.standard_multiplier),
            "private_multiplier": str(loaded.private_multiplier),
            "companion_base_fee": str(loaded.companion_base_fee),
            "companion_per_km": str(loaded.companion_per_km),
            "companion_max_fee": str(loaded.companion_max_fee),
            "max_ground_distance_km": loaded.max_ground_distance_km,
            "estimated_speed_kmh": loaded.estimated_speed_kmh,
        }

    @staticmethod
    def _from_cache(cached: dict) -> GroundTransportSettings:
        return GroundTransportSettings(
            enabled=bool(cached["enabled"]),
            base_price=Decimal(cached["base_price"]),
            price_per_km=Decimal(cached["price_per_km"]),
            price_per_mile=Decimal(cached["price_per_mile"]),
            standard_multiplier=Decimal(cached["standard_multiplier"]),
            private_multiplier=Decimal(cached["private_multiplier"]),
            companion_base_fee=Decimal(cached["companion_base_fee"]),
            companion_per_km=Decimal(cached["companion_per_km"]),
            companion_max_fee=Decimal(cached["companion_max_fee"]),
            max_ground_distance_km=float(cached["max_ground_distance_km"]),
            estimated_speed_kmh=float(cached["estimated_speed_kmh"]),
        )
