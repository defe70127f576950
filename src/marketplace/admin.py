from __future__ import annotations

from typing import Any

from django.contrib import admin, messages
from django.utils import timezone

from marketplace.exceptions import InvalidProofTransitionError
from marketplace.models import (
    AddOn,
    Donation,
    FosterApplication,
    GroundTransportConfig,
    Order,
    OrderItem,
    PaymentProof,
    Pet,
)
from marketplace.services.proofs import review_proof
from marketplace.services.transport_settings import GroundTransportSettingsProvider


@admin.register(Pet)
class PetAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "pet_type",
        "breed",
        "adoption_fee",
        "status",
        "location",
        "origin_country_id",
        "origin_region_id",
        "is_location_ambiguous",
    )
    list_filter = ("status", "pet_type", "is_location_ambiguous", "origin_country_id")
    search_fields = ("name", "breed", "location")
    ordering = ("name",)


@admin.register(GroundTransportConfig)
class GroundTransportConfigAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "is_active",
        "is_enabled",
        "base_price",
        "price_per_km",
        "max_ground_distance_km",
        "updated_at",
    )
    list_filter = ("is_active", "is_enabled")

    def save_model(self, request: Any, obj: GroundTransportConfig, form: Any, change: bool) -> None:
        super().save_model(request, obj, form, change)
        GroundTransportSettingsProvider.invalidate()

    def delete_model(self, request: Any, obj: GroundTransportConfig) -> None:
        super().delete_model(request, obj)
        GroundTransportSettingsProvider.invalidate()


@admin.register(AddOn)
class AddOnAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "price", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    prepopulated_fields = {"code": ("name",)}


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = (
        "pet",
        "is_reservation",
        "full_price",
        "base_amount",
        "shipping_method",
        "shipping_total",
        "add_ons",
        "add_ons_total",
        "due_now",
        "remaining_balance",
    )
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "customer_name",
        "customer_email",
        "payment_method",
        "status",
        "total_due_now",
        "currency",
        "created_at",
    )
    list_filter = ("status", "payment_method")
    search_fields = ("reference", "customer_name", "customer_email", "processor_reference")
    readonly_fields = ("reference", "total_due_now", "processor_reference", "created_at", "updated_at")
    inlines = (OrderItemInline,)


@admin.register(PaymentProof)
class PaymentProofAdmin(admin.ModelAdmin):
    list_display = ("transaction_reference", "order", "amount", "status", "created_at", "reviewed_at")
    list_filter = ("status",)
    search_fields = ("transaction_reference", "order__reference")
    readonly_fields = ("reviewed_at", "created_at")
    actions = ("approve_proofs", "reject_proofs")

    @admin.action(description="Approve selected proofs")
    def approve_proofs(self, request: Any, queryset: Any) -> None:
        self._review(request, queryset, approve=True)

    @admin.action(description="Reject selected proofs")
    def reject_proofs(self, request: Any, queryset: Any) -> None:
        self._review(request, queryset, approve=False)

    def _review(self, request: Any, queryset: Any, approve: bool) -> None:
        reviewed = 0
        for proof in queryset.select_related("order"):
            try:
                review_proof(proof, approve=approve)
                reviewed += 1
            except InvalidProofTransitionError as exc:
                self.message_user(request, f"{proof}: {exc}", level=messages.WARNING)
        self.message_user(request, f"Reviewed {reviewed} proof(s)")


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = (
        "donor_name",
        "donor_email",
        "amount",
        "currency",
        "donation_type",
        "status",
        "created_at",
    )
    list_filter = ("status", "donation_type")
    search_fields = ("donor_name", "donor_email")
    readonly_fields = ("created_at", "updated_at")
    actions = ("mark_verified", "mark_rejected")

    @admin.action(description="Mark selected donations verified")
    def mark_verified(self, request: Any, queryset: Any) -> None:
        updated = queryset.filter(status=Donation.Status.PENDING).update(
            status=Donation.Status.VERIFIED, updated_at=timezone.now()
        )
        self.message_user(request, f"Verified {updated} donation(s)")

    @admin.action(description="Mark selected donations rejected")
    def mark_rejected(self, request: Any, queryset: Any) -> None:
        updated = queryset.filter(status=Donation.Status.PENDING).update(
            status=Donation.Status.REJECTED, updated_at=timezone.now()
        )
        self.message_user(request, f"Rejected {updated} donation(s)")


@admin.register(FosterApplication)
class FosterApplicationAdmin(admin.ModelAdmin):
    list_display = (
        "applicant_name",
        "applicant_email",
        "housing_type",
        "availability",
        "status",
        "created_at",
    )
    list_filter = ("status", "housing_type", "availability", "has_yard")
    search_fields = ("applicant_name", "applicant_email", "address")
    readonly_fields = ("created_at", "updated_at")
