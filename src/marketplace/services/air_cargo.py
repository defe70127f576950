from __future__ import annotations

from decimal import Decimal

from django.conf import settings

from marketplace.services.money import ZERO, round2, to_decimal
from marketplace.services.reference_data import get_air_cargo_country
from marketplace.services.types import AirQuote, PricingFailure, PricingFailureReason


def price_air_cargo(
    destination_country_id: str,
    flight_nanny_requested: bool,
    flight_nanny_base_price: Decimal | float,
) -> AirQuote | PricingFailure:
    """Flat per-lane air freight price, with the flight nanny itemized on its own line."""
    nanny_price = round2(flight_nanny_base_price)
    if nanny_price < 0:
        return PricingFailure(
            PricingFailureReason.INVALID_INPUT, "Flight nanny price must be non-negative"
        )

    lane = get_air_cargo_country(destination_country_id)
    if lane is None:
        return PricingFailure(
            PricingFailureReason.DESTINATION_NOT_SUPPORTED,
            f"Air cargo is not available to {destination_country_id!r}",
        )

    shipping_price = round2(lane.price)
    flight_nanny_price = nanny_price if flight_nanny_requested else ZERO
    return AirQuote(
        destination_id=lane.id,
        destination_label=lane.label,
        shipping_price=shipping_price,
        flight_nanny_price=flight_nanny_price,
        total_price=round2(shipping_price + flight_nanny_price),
    )


def compute_air_quote(destination_country_id: str, flight_nanny: bool) -> AirQuote | PricingFailure:
    return price_air_cargo(
        destination_country_id,
        flight_nanny,
        to_decimal(settings.FLIGHT_NANNY_BASE_PRICE),
    )
