from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

TransportTier = Literal["standard", "private"]
PaymentType = Literal["full", "deposit"]


@dataclass(slots=True, frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(slots=True, frozen=True)
class Region:
    id: str
    name: str
    latitude: float
    longitude: float

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


@dataclass(slots=True, frozen=True)
class Country:
    id: str
    name: str
    flag: str
    latitude: float
    longitude: float
    regions: tuple[Region, ...]


@dataclass(slots=True, frozen=True)
class AirCargoCountry:
    id: str
    label: str
    region: str
    price: Decimal


@dataclass(slots=True, frozen=True)
class GroundTransportSettings:
    enabled: bool
    base_price: Decimal
    price_per_km: Decimal
    price_per_mile: Decimal
    standard_multiplier: Decimal
    private_multiplier: Decimal
    companion_base_fee: Decimal
    companion_per_km: Decimal
    companion_max_fee: Decimal
    max_ground_distance_km: float
    estimated_speed_kmh: float


@dataclass(slots=True, frozen=True)
class SettingsLoading:
    pass


@dataclass(slots=True, frozen=True)
class SettingsLoaded:
    settings: GroundTransportSettings


@dataclass(slots=True, frozen=True)
class SettingsFailed:
    reason: str


SettingsState = SettingsLoading | SettingsLoaded | SettingsFailed


class PricingFailureReason(str, Enum):
    CONFIGURATION_UNAVAILABLE = "configuration_unavailable"
    DISTANCE_EXCEEDS_LIMIT = "distance_exceeds_limit"
    DESTINATION_NOT_SUPPORTED = "destination_not_supported"
    INVALID_INPUT = "invalid_input"


@dataclass(slots=True, frozen=True)
class PricingFailure:
    """An expected pricing outcome that yields no quote."""

    reason: PricingFailureReason
    message: str


@dataclass(slots=True, frozen=True)
class TransportQuote:
    distance_km: float
    distance_miles: float
    estimated_time: str
    tier: TransportTier
    tier_name: str
    has_companion: bool
    base_shipping_price: Decimal
    companion_fee: Decimal
    total_price: Decimal


@dataclass(slots=True, frozen=True)
class AirQuote:
    destination_id: str
    destination_label: str
    shipping_price: Decimal
    flight_nanny_price: Decimal
    total_price: Decimal

    @property
    def has_flight_nanny(self) -> bool:
        return self.flight_nanny_price > 0

    def breakdown(self) -> dict[str, Decimal]:
        items = {"shipping": self.shipping_price}
        if self.has_flight_nanny:
            items["flight_nanny"] = self.flight_nanny_price
        return items


@dataclass(slots=True, frozen=True)
class AddOn:
    id: str
    name: str
    price: Decimal


@dataclass(slots=True, frozen=True)
class ShippingSelection:
    id: str
    name: str
    price: Decimal
    # quote parameters the price came from, absent for client-priced shipping
    quote: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True)
class LineItem:
    pet_id: str
    pet_name: str
    base_price: Decimal
    add_ons: tuple[AddOn, ...] = ()
    shipping: ShippingSelection | None = None
    is_reservation: bool = False

    @property
    def payment_type(self) -> PaymentType:
        return "deposit" if self.is_reservation else "full"


@dataclass(slots=True, frozen=True)
class OrderTotal:
    payment_type: PaymentType
    full_price: Decimal
    base_amount: Decimal
    add_ons_total: Decimal
    shipping_total: Decimal
    due_now: Decimal
    remaining_balance: Decimal | None = None
    breakdown: dict[str, Decimal] = field(default_factory=dict)
