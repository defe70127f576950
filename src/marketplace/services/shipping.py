from __future__ import annotations

from marketplace.exceptions import PetUnavailableError
from marketplace.models import Pet
from marketplace.schemas import CartShippingRequest, LocationRef
from marketplace.services.air_cargo import compute_air_quote
from marketplace.services.currency import format_price
from marketplace.services.ground_transport import compute_ground_quote
from marketplace.services.reference_data import get_region
from marketplace.services.transport_settings import GroundTransportSettingsProvider
from marketplace.services.types import (
    AirQuote,
    GeoPoint,
    PricingFailure,
    PricingFailureReason,
    ShippingSelection,
    TransportQuote,
    TransportTier,
)


class ShippingQuoteService:
    def __init__(self, settings_provider: GroundTransportSettingsProvider | None = None) -> None:
        self.settings_provider = settings_provider or GroundTransportSettingsProvider()

    def ground_quote(
        self,
        destination: LocationRef,
        tier: TransportTier,
        has_companion: bool,
        *,
        pet: Pet | None = None,
        origin: LocationRef | None = None,
    ) -> TransportQuote | PricingFailure:
        if pet is not None and origin is not None:
            return PricingFailure(
                PricingFailureReason.INVALID_INPUT, "Quote from a pet or an origin, not both"
            )
        if pet is not None:
            origin = self.pet_origin(pet)
            if origin is None:
                return PricingFailure(
                    PricingFailureReason.INVALID_INPUT,
                    f"{pet.name} has no resolved origin location",
                )
        if origin is None:
            return PricingFailure(PricingFailureReason.INVALID_INPUT, "Origin is required")

        origin_point = self._resolve(origin)
        if origin_point is None:
            return PricingFailure(
                PricingFailureReason.INVALID_INPUT, f"Unknown origin region {origin.region_id}"
            )
        destination_point = self._resolve(destination)
        if destination_point is None:
            return PricingFailure(
                PricingFailureReason.INVALID_INPUT,
                f"Unknown destination region {destination.region_id}",
            )

        return compute_ground_quote(
            origin_point,
            destination_point,
            tier,
            has_companion,
            self.settings_provider.get_state(),
        )

    def select_shipping(
        self, pet: Pet, request: CartShippingRequest
    ) -> ShippingSelection | PricingFailure | None:
        """Price a cart line's shipping choice. `None` means the buyer arranges pickup."""
        quote_params = request.model_dump(mode="json")
        if request.method == "ground":
            quote = self.ground_quote(
                request.destination, request.tier, request.has_companion, pet=pet
            )
            if isinstance(quote, PricingFailure):
                return quote
            name = f"{quote.tier_name} ({quote.distance_km:,.0f} km)"
            if quote.has_companion:
                name += " with companion"
            return ShippingSelection(
                id=f"ground_{quote.tier}", name=name, price=quote.total_price, quote=quote_params
            )

        if request.method == "air":
            air_quote = self.air_quote(request.destination_country_id, request.flight_nanny)
            if isinstance(air_quote, PricingFailure):
                return air_quote
            name = f"Air Cargo to {air_quote.destination_label}"
            if air_quote.has_flight_nanny:
                name += f" + Flight Nanny ({format_price(air_quote.flight_nanny_price)})"
            return ShippingSelection(
                id=f"air_{air_quote.destination_id}",
                name=name,
                price=air_quote.total_price,
                quote=quote_params,
            )

        return None

    @staticmethod
    def air_quote(destination_country_id: str, flight_nanny: bool) -> AirQuote | PricingFailure:
        return compute_air_quote(destination_country_id, flight_nanny)

    @staticmethod
    def pet_origin(pet: Pet) -> LocationRef | None:
        if not pet.has_structured_origin:
            return None
        return LocationRef(country_id=pet.origin_country_id, region_id=pet.origin_region_id)

    @staticmethod
    def get_pet(pet_id: int) -> Pet:
        try:
            return Pet.objects.get(pk=pet_id)
        except Pet.DoesNotExist as exc:
            raise PetUnavailableError(f"Pet {pet_id} not found") from exc

    @staticmethod
    def _resolve(location: LocationRef) -> GeoPoint | None:
        region = get_region(location.country_id, location.region_id)
        return region.point if region else None
