from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, model_validator


class LocationRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    country_id: str = Field(min_length=1, max_length=40)
    region_id: str = Field(min_length=1, max_length=40)


class GroundQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pet_id: int | None = None
    origin: LocationRef | None = None
    destination: LocationRef
    tier: Literal["standard", "private"] = "standard"
    has_companion: bool = False

    @model_validator(mode="after")
    def _require_origin(self) -> GroundQuoteRequest:
        if self.pet_id is None and self.origin is None:
            raise ValueError("Either pet_id or origin is required")
        if self.pet_id is not None and self.origin is not None:
            raise ValueError("Provide pet_id or origin, not both")
        return self


class AirQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    destination_country_id: str = Field(min_length=1, max_length=40)
    flight_nanny: bool = False


class AddOnPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=60)
    name: str = Field(min_length=1, max_length=120)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class ShippingPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=60)
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class LineItemPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pet_id: str = Field(min_length=1, max_length=40)
    pet_name: str = Field(default="", max_length=120)
    base_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    add_ons: list[AddOnPayload] = Field(default_factory=list)
    shipping: ShippingPayload | None = None


class OrderTotalRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    line_item: LineItemPayload
    payment_type: Literal["full", "deposit"] = "full"


class CartAddRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pet_id: int
    payment_type: Literal["full", "deposit"] = "full"
    add_on_codes: list[str] = Field(default_factory=list)


class CartAddOnsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    add_on_codes: list[str] = Field(default_factory=list)


class CartShippingRequest(BaseModel):
    """Shipping is priced server side from a quote request, never taken from the client."""

    model_config = ConfigDict(extra="forbid")

    method: Literal["ground", "air", "none"]
    destination: LocationRef | None = None
    tier: Literal["standard", "private"] = "standard"
    has_companion: bool = False
    destination_country_id: str | None = Field(default=None, max_length=40)
    flight_nanny: bool = False

    @model_validator(mode="after")
    def _require_destination(self) -> CartShippingRequest:
        if self.method == "ground" and self.destination is None:
            raise ValueError("destination is required for ground transport")
        if self.method == "air" and not self.destination_country_id:
            raise ValueError("destination_country_id is required for air cargo")
        return self


PaymentMethod = Literal[
    "usdt", "bank_uk", "bank_usa", "bank_eu", "paypal", "stripe", "checkoutcom"
]


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr = Field(max_length=255)
    phone: str | None = Field(default=None, max_length=40)
    address: str = Field(min_length=5, max_length=500)
    payment_method: PaymentMethod
    message: str | None = Field(default=None, max_length=500)
    accept_terms: bool

    @model_validator(mode="after")
    def _terms_accepted(self) -> CheckoutRequest:
        if not self.accept_terms:
            raise ValueError("You must accept the terms and conditions")
        return self


class ProofSubmitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    transaction_reference: str = Field(min_length=3, max_length=255)
    proof_url: HttpUrl | None = None
    notes: str | None = Field(default=None, max_length=500)


class PaymentConfirmRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_id: str | None = Field(default=None, min_length=1, max_length=255)


class ProofReviewRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    decision: Literal["approve", "reject"]
    notes: str | None = Field(default=None, max_length=500)


class DonationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    donor_name: str = Field(min_length=2, max_length=100)
    donor_email: EmailStr = Field(max_length=255)
    donor_phone: str | None = Field(default=None, max_length=40)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    donation_type: Literal["one-time", "monthly"] = "one-time"
    message: str | None = Field(default=None, max_length=500)
    proof_url: HttpUrl | None = None


class FosterApplicationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    applicant_name: str = Field(min_length=2, max_length=100)
    applicant_email: EmailStr = Field(max_length=255)
    applicant_phone: str = Field(min_length=10, max_length=40)
    address: str = Field(min_length=10, max_length=500)
    housing_type: Literal["house", "apartment", "condo", "other"]
    has_yard: bool = False
    has_other_pets: bool = False
    other_pets_details: str | None = Field(default=None, max_length=500)
    has_children: bool = False
    children_ages: str | None = Field(default=None, max_length=100)
    experience: str | None = Field(default=None, max_length=2000)
    availability: Literal["short-term", "long-term", "both"]
    preferred_pet_types: list[Literal["dog", "cat", "bird", "small animal", "other"]] = Field(
        default_factory=list
    )


class GroundQuoteResponse(BaseModel):
    distance_km: float
    distance_miles: float
    estimated_time: str
    tier: Literal["standard", "private"]
    tier_name: str
    has_companion: bool
    base_shipping_price: Decimal
    companion_fee: Decimal
    total_price: Decimal


class AirQuoteResponse(BaseModel):
    destination_id: str
    destination_label: str
    shipping_price: Decimal
    flight_nanny_price: Decimal
    total_price: Decimal
    breakdown: dict[str, Decimal]


class OrderTotalResponse(BaseModel):
    payment_type: Literal["full", "deposit"]
    full_price: Decimal
    base_amount: Decimal
    add_ons_total: Decimal
    shipping_total: Decimal
    due_now: Decimal
    remaining_balance: Decimal | None = None
    breakdown: dict[str, Decimal]
    display_due_now: str
