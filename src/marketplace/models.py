from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models


class Pet(models.Model):
    objects = models.Manager["Pet"]()

    class Status(models.TextChoices):
        AVAILABLE = "available"
        PENDING = "pending"
        ADOPTED = "adopted"

    name = models.CharField(max_length=120)
    pet_type = models.CharField(max_length=40)
    breed = models.CharField(max_length=120, blank=True)
    age = models.CharField(max_length=60, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    description = models.TextField(blank=True)
    adoption_fee = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    canonical_key = models.CharField(max_length=300, unique=True)

    # Free-text location as entered by staff, e.g. "Austin, Texas, USA"
    location = models.CharField(max_length=255, blank=True)
    origin_country_id = models.CharField(max_length=40, blank=True)
    origin_region_id = models.CharField(max_length=40, blank=True)
    is_location_ambiguous = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        indexes = (
            models.Index(fields=["status"]),
            models.Index(fields=["pet_type", "breed"]),
        )

    @property
    def has_structured_origin(self) -> bool:
        return bool(self.origin_country_id and self.origin_region_id)

    def __str__(self) -> str:
        return f"{self.name} ({self.breed or self.pet_type})"


class GroundTransportConfig(models.Model):
    objects = models.Manager["GroundTransportConfig"]()

    is_enabled = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    price_per_km = models.DecimalField(max_digits=8, decimal_places=4)
    price_per_mile = models.DecimalField(max_digits=8, decimal_places=4)
    standard_multiplier = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("1.000"))
    private_multiplier = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("1.500"))
    companion_base_fee = models.DecimalField(max_digits=10, decimal_places=2)
    companion_per_km = models.DecimalField(max_digits=8, decimal_places=4)
    companion_max_fee = models.DecimalField(max_digits=10, decimal_places=2)
    max_ground_distance_km = models.FloatField()
    estimated_speed_kmh = models.FloatField(default=80)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-updated_at",)

    def __str__(self) -> str:
        state = "enabled" if self.is_enabled else "disabled"
        return f"Ground transport settings ({state})"


class AddOn(models.Model):
    objects = models.Manager["AddOn"]()

    code = models.SlugField(max_length=60, unique=True)
    name = models.CharField(max_length=120)
    description = models.CharField(max_length=255, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class Order(models.Model):
    objects = models.Manager["Order"]()

    class Status(models.TextChoices):
        PENDING_PAYMENT = "pending_payment"
        PROOF_SUBMITTED = "proof_submitted"
        PROOF_REJECTED = "proof_rejected"
        PAID = "paid"
        CANCELLED = "cancelled"

    class PaymentMethod(models.TextChoices):
        USDT = "usdt", "USDT TRC20"
        BANK_UK = "bank_uk", "UK BACS/Faster Payments"
        BANK_USA = "bank_usa", "USA Wire Transfer"
        BANK_EU = "bank_eu", "SEPA Transfer"
        PAYPAL = "paypal", "PayPal"
        STRIPE = "stripe", "Stripe Card Payment"
        CHECKOUTCOM = "checkoutcom", "Credit/Debit Card"

    reference = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    customer_name = models.CharField(max_length=100)
    customer_email = models.EmailField(max_length=255)
    customer_phone = models.CharField(max_length=40, blank=True)
    customer_address = models.CharField(max_length=500)
    customer_message = models.CharField(max_length=500, blank=True)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING_PAYMENT
    )
    currency = models.CharField(max_length=3, default="USD")
    total_due_now = models.DecimalField(max_digits=12, decimal_places=2)
    processor_reference = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = (models.Index(fields=["status"]),)

    @property
    def is_manual_payment(self) -> bool:
        return self.payment_method in {
            self.PaymentMethod.USDT,
            self.PaymentMethod.BANK_UK,
            self.PaymentMethod.BANK_USA,
            self.PaymentMethod.BANK_EU,
        }

    def __str__(self) -> str:
        return f"Order {self.reference} ({self.customer_email})"


class OrderItem(models.Model):
    objects = models.Manager["OrderItem"]()

    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    pet = models.ForeignKey(Pet, related_name="order_items", on_delete=models.PROTECT)
    is_reservation = models.BooleanField(default=False)
    full_price = models.DecimalField(max_digits=10, decimal_places=2)
    base_amount = models.DecimalField(max_digits=10, decimal_places=2)
    shipping_method = models.CharField(max_length=255, blank=True)
    shipping_total = models.DecimalField(max_digits=10, decimal_places=2)
    add_ons = models.JSONField(default=list, blank=True)
    add_ons_total = models.DecimalField(max_digits=10, decimal_places=2)
    due_now = models.DecimalField(max_digits=12, decimal_places=2)
    remaining_balance = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.pet} on {self.order.reference}"


class PaymentProof(models.Model):
    objects = models.Manager["PaymentProof"]()

    class Status(models.TextChoices):
        PENDING = "pending"
        APPROVED = "approved"
        REJECTED = "rejected"

    order = models.ForeignKey(Order, related_name="proofs", on_delete=models.CASCADE)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    transaction_reference = models.CharField(max_length=255)
    proof_url = models.URLField(max_length=500, blank=True)
    notes = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    review_notes = models.CharField(max_length=500, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"Proof {self.transaction_reference} for {self.order.reference}"


class Donation(models.Model):
    objects = models.Manager["Donation"]()

    class DonationType(models.TextChoices):
        ONE_TIME = "one-time", "One-time"
        MONTHLY = "monthly", "Monthly"

    class Status(models.TextChoices):
        PENDING = "pending"
        VERIFIED = "verified"
        REJECTED = "rejected"

    donor_name = models.CharField(max_length=100)
    donor_email = models.EmailField(max_length=255)
    donor_phone = models.CharField(max_length=40, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    donation_type = models.CharField(
        max_length=20, choices=DonationType.choices, default=DonationType.ONE_TIME
    )
    message = models.CharField(max_length=500, blank=True)
    proof_url = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    admin_notes = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = (models.Index(fields=["status"]),)

    def __str__(self) -> str:
        return f"{self.donor_name}: {self.amount} {self.currency}"


class FosterApplication(models.Model):
    objects = models.Manager["FosterApplication"]()

    class Status(models.TextChoices):
        PENDING = "pending"
        APPROVED = "approved"
        ACTIVE = "active"
        REJECTED = "rejected"

    applicant_name = models.CharField(max_length=100)
    applicant_email = models.EmailField(max_length=255)
    applicant_phone = models.CharField(max_length=40)
    address = models.CharField(max_length=500)
    housing_type = models.CharField(max_length=40)
    has_yard = models.BooleanField(default=False)
    has_other_pets = models.BooleanField(default=False)
    other_pets_details = models.CharField(max_length=500, blank=True)
    has_children = models.BooleanField(default=False)
    children_ages = models.CharField(max_length=100, blank=True)
    experience = models.TextField(blank=True)
    availability = models.CharField(max_length=40)
    preferred_pet_types = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    admin_notes = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = (models.Index(fields=["status"]),)

    def __str__(self) -> str:
        return f"Foster application from {self.applicant_name}"
