from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from pydantic import BaseModel, ValidationError

from marketplace.exceptions import (
    CartItemNotFoundError,
    EmptyCartError,
    ExternalServiceError,
    InvalidProofTransitionError,
    OrderNotFoundError,
    PaymentConfirmationError,
    PaymentProviderNotConfiguredError,
    PetUnavailableError,
    ShippingUnavailableError,
)
from marketplace.models import AddOn, Pet, PaymentProof
from marketplace.schemas import (
    AirQuoteRequest,
    AirQuoteResponse,
    CartAddOnsRequest,
    CartAddRequest,
    CartShippingRequest,
    CheckoutRequest,
    DonationRequest,
    FosterApplicationRequest,
    GroundQuoteRequest,
    GroundQuoteResponse,
    OrderTotalRequest,
    OrderTotalResponse,
    PaymentConfirmRequest,
    ProofReviewRequest,
    ProofSubmitRequest,
)
from marketplace.services import community, proofs
from marketplace.services.cart import Cart
from marketplace.services.checkout import CheckoutService
from marketplace.services.currency import format_price, to_display_amount
from marketplace.services.money import round2
from marketplace.services.order_pricing import compute_cart_total, compute_order_total
from marketplace.services.reference_data import (
    air_cargo_regions,
    countries_by_region,
    world_countries,
)
from marketplace.services.shipping import ShippingQuoteService
from marketplace.services.types import (
    AddOn as AddOnValue,
    AirQuote,
    LineItem,
    OrderTotal,
    PricingFailure,
    PricingFailureReason,
    ShippingSelection,
    TransportQuote,
)

FAILURE_STATUS = {
    PricingFailureReason.INVALID_INPUT: 400,
    PricingFailureReason.DISTANCE_EXCEEDS_LIMIT: 409,
    PricingFailureReason.DESTINATION_NOT_SUPPORTED: 422,
    PricingFailureReason.CONFIGURATION_UNAVAILABLE: 503,
}

_shipping_service: ShippingQuoteService | None = None
_checkout_service: CheckoutService | None = None


def get_shipping_service() -> ShippingQuoteService:
    global _shipping_service
    if _shipping_service is None:
        _shipping_service = ShippingQuoteService()
    return _shipping_service


def get_checkout_service() -> CheckoutService:
    global _checkout_service
    if _checkout_service is None:
        _checkout_service = CheckoutService()
    return _checkout_service


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "status": "ok",
            "pets": {
                "total": Pet.objects.count(),
                "available": Pet.objects.filter(status=Pet.Status.AVAILABLE).count(),
            },
        }
    )


@require_GET
def locations_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "countries": [
                {
                    "id": country.id,
                    "name": country.name,
                    "flag": country.flag,
                    "regions": [
                        {"id": region.id, "name": region.name} for region in country.regions
                    ],
                }
                for country in world_countries()
            ]
        }
    )


@require_GET
def air_cargo_countries_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "regions": [
                {
                    "region": region,
                    "countries": [
                        {"id": entry.id, "label": entry.label, "price": str(entry.price)}
                        for entry in countries_by_region(region)
                    ],
                }
                for region in air_cargo_regions()
            ]
        }
    )


@csrf_exempt
@require_POST
def ground_quote_view(request: HttpRequest) -> HttpResponse:
    quote_request = _validate(request, GroundQuoteRequest)
    if isinstance(quote_request, JsonResponse):
        return quote_request

    service = get_shipping_service()
    pet = None
    if quote_request.pet_id is not None:
        try:
            pet = service.get_pet(quote_request.pet_id)
        except PetUnavailableError as exc:
            return _error_response("pet_not_found", str(exc), status=404)

    quote = service.ground_quote(
        quote_request.destination,
        quote_request.tier,
        quote_request.has_companion,
        pet=pet,
        origin=quote_request.origin,
    )
    if isinstance(quote, PricingFailure):
        return _failure_response(quote)
    return JsonResponse(_ground_quote_payload(quote).model_dump(mode="json"), status=200)


@csrf_exempt
@require_POST
def air_quote_view(request: HttpRequest) -> HttpResponse:
    quote_request = _validate(request, AirQuoteRequest)
    if isinstance(quote_request, JsonResponse):
        return quote_request

    quote = get_shipping_service().air_quote(
        quote_request.destination_country_id, quote_request.flight_nanny
    )
    if isinstance(quote, PricingFailure):
        return _failure_response(quote)
    return JsonResponse(_air_quote_payload(quote).model_dump(mode="json"), status=200)


@csrf_exempt
@require_POST
def order_total_view(request: HttpRequest) -> HttpResponse:
    total_request = _validate(request, OrderTotalRequest)
    if isinstance(total_request, JsonResponse):
        return total_request

    payload = total_request.line_item
    line_item = LineItem(
        pet_id=payload.pet_id,
        pet_name=payload.pet_name,
        base_price=payload.base_price,
        add_ons=tuple(
            AddOnValue(id=add_on.id, name=add_on.name, price=add_on.price)
            for add_on in payload.add_ons
        ),
        shipping=(
            ShippingSelection(
                id=payload.shipping.id, name=payload.shipping.name, price=payload.shipping.price
            )
            if payload.shipping
            else None
        ),
        is_reservation=total_request.payment_type == "deposit",
    )
    total = compute_order_total(line_item, total_request.payment_type)
    if isinstance(total, PricingFailure):
        return _failure_response(total)
    return JsonResponse(_order_total_payload(total).model_dump(mode="json"), status=200)


@require_GET
def cart_view(request: HttpRequest) -> HttpResponse:
    return _cart_response(Cart(request.session))


@csrf_exempt
@require_POST
def cart_items_view(request: HttpRequest) -> HttpResponse:
    add_request = _validate(request, CartAddRequest)
    if isinstance(add_request, JsonResponse):
        return add_request

    try:
        pet = get_shipping_service().get_pet(add_request.pet_id)
    except PetUnavailableError as exc:
        return _error_response("pet_not_found", str(exc), status=404)
    if pet.status != Pet.Status.AVAILABLE:
        return _error_response("pet_unavailable", f"{pet.name} is not available", status=409)

    add_ons = _lookup_add_ons(add_request.add_on_codes)
    if isinstance(add_ons, JsonResponse):
        return add_ons

    cart = Cart(request.session)
    cart.add(
        LineItem(
            pet_id=str(pet.pk),
            pet_name=pet.name,
            base_price=round2(pet.adoption_fee),
            add_ons=tuple(add_ons),
            is_reservation=add_request.payment_type == "deposit",
        )
    )
    return _cart_response(cart, status=201)


@csrf_exempt
@require_http_methods(["DELETE"])
def cart_item_view(request: HttpRequest, pet_id: str) -> HttpResponse:
    cart = Cart(request.session)
    try:
        cart.remove(pet_id)
    except CartItemNotFoundError as exc:
        return _error_response("not_in_cart", str(exc), status=404)
    return _cart_response(cart)


@csrf_exempt
@require_http_methods(["PUT"])
def cart_item_add_ons_view(request: HttpRequest, pet_id: str) -> HttpResponse:
    add_ons_request = _validate(request, CartAddOnsRequest)
    if isinstance(add_ons_request, JsonResponse):
        return add_ons_request

    add_ons = _lookup_add_ons(add_ons_request.add_on_codes)
    if isinstance(add_ons, JsonResponse):
        return add_ons

    cart = Cart(request.session)
    try:
        cart.update_add_ons(pet_id, add_ons)
    except CartItemNotFoundError as exc:
        return _error_response("not_in_cart", str(exc), status=404)
    return _cart_response(cart)


@csrf_exempt
@require_http_methods(["PUT"])
def cart_item_shipping_view(request: HttpRequest, pet_id: str) -> HttpResponse:
    shipping_request = _validate(request, CartShippingRequest)
    if isinstance(shipping_request, JsonResponse):
        return shipping_request

    cart = Cart(request.session)
    if not any(item.pet_id == pet_id for item in cart.items):
        return _error_response("not_in_cart", f"Pet {pet_id} is not in the cart", status=404)

    service = get_shipping_service()
    try:
        pet = service.get_pet(int(pet_id))
    except (PetUnavailableError, ValueError):
        return _error_response("pet_not_found", f"Pet {pet_id} not found", status=404)

    shipping = service.select_shipping(pet, shipping_request)
    if isinstance(shipping, PricingFailure):
        return _failure_response(shipping)

    cart.update_shipping(pet_id, shipping)
    return _cart_response(cart)


@csrf_exempt
@require_POST
def checkout_view(request: HttpRequest) -> HttpResponse:
    checkout_request = _validate(request, CheckoutRequest)
    if isinstance(checkout_request, JsonResponse):
        return checkout_request

    try:
        result = get_checkout_service().place_order(Cart(request.session), checkout_request)
    except EmptyCartError as exc:
        return _error_response("empty_cart", str(exc), status=400)
    except PetUnavailableError as exc:
        return _error_response("pet_unavailable", str(exc), status=409)
    except ShippingUnavailableError as exc:
        return _error_response("shipping_unavailable", str(exc), status=409)
    except PaymentProviderNotConfiguredError as exc:
        return _error_response("payment_unavailable", str(exc), status=503)
    except ExternalServiceError as exc:
        return _error_response("upstream_error", str(exc), status=502)

    order = result.order
    body: dict[str, Any] = {
        "order": {
            "reference": str(order.reference),
            "status": order.status,
            "payment_method": order.payment_method,
            "payment_method_label": order.get_payment_method_display(),
            "currency": order.currency,
            "total_due_now": f"{order.total_due_now:.2f}",
            "display_total": format_price(to_display_amount(order.total_due_now)),
        }
    }
    if result.instructions is not None:
        body["instructions"] = {
            "label": result.instructions.label,
            "currency": result.instructions.currency,
            "details": result.instructions.details,
            "note": result.instructions.note,
        }
    if result.session is not None:
        body["payment_session"] = {
            "provider": result.session.provider,
            "session_id": result.session.session_id,
            "status": result.session.status,
            "redirect_url": result.session.redirect_url,
            "client_secret": result.session.client_secret,
            "public_key": result.session.public_key,
        }
    return JsonResponse(body, status=201)


@csrf_exempt
@require_POST
def proof_submit_view(request: HttpRequest, reference: str) -> HttpResponse:
    proof_request = _validate(request, ProofSubmitRequest)
    if isinstance(proof_request, JsonResponse):
        return proof_request

    try:
        order = proofs.get_order(str(reference))
        proof = proofs.submit_proof(
            order,
            amount=proof_request.amount,
            transaction_reference=proof_request.transaction_reference,
            proof_url=str(proof_request.proof_url) if proof_request.proof_url else "",
            notes=proof_request.notes or "",
        )
    except OrderNotFoundError as exc:
        return _error_response("order_not_found", str(exc), status=404)
    except InvalidProofTransitionError as exc:
        return _error_response("invalid_transition", str(exc), status=409)

    return JsonResponse(
        {"proof": {"id": proof.pk, "status": proof.status}, "order_status": order.status},
        status=201,
    )


@csrf_exempt
@require_POST
def proof_review_view(request: HttpRequest, reference: str, proof_id: int) -> HttpResponse:
    if not request.user.is_authenticated or not request.user.is_staff:
        return _error_response("forbidden", "Staff access required", status=403)

    review_request = _validate(request, ProofReviewRequest)
    if isinstance(review_request, JsonResponse):
        return review_request

    proof = (
        PaymentProof.objects.select_related("order")
        .filter(pk=proof_id, order__reference=reference)
        .first()
    )
    if proof is None:
        return _error_response("proof_not_found", f"Proof {proof_id} not found", status=404)

    try:
        reviewed = proofs.review_proof(
            proof, approve=review_request.decision == "approve", notes=review_request.notes or ""
        )
    except InvalidProofTransitionError as exc:
        return _error_response("invalid_transition", str(exc), status=409)

    return JsonResponse(
        {
            "proof": {"id": reviewed.pk, "status": reviewed.status},
            "order_status": reviewed.order.status,
        }
    )


@csrf_exempt
@require_POST
def payment_confirm_view(request: HttpRequest, reference: str) -> HttpResponse:
    confirm_request = _validate(request, PaymentConfirmRequest)
    if isinstance(confirm_request, JsonResponse):
        return confirm_request

    try:
        order = get_checkout_service().confirm_payment(
            proofs.get_order(str(reference)), payment_id=confirm_request.payment_id or ""
        )
    except OrderNotFoundError as exc:
        return _error_response("order_not_found", str(exc), status=404)
    except PaymentConfirmationError as exc:
        return _error_response("payment_not_confirmed", str(exc), status=409)
    except PaymentProviderNotConfiguredError as exc:
        return _error_response("payment_unavailable", str(exc), status=503)
    except ExternalServiceError as exc:
        return _error_response("upstream_error", str(exc), status=502)

    return JsonResponse({"order": {"reference": str(order.reference), "status": order.status}})


@csrf_exempt
@require_POST
def donations_view(request: HttpRequest) -> HttpResponse:
    donation_request = _validate(request, DonationRequest)
    if isinstance(donation_request, JsonResponse):
        return donation_request

    donation = community.record_donation(donation_request)
    return JsonResponse(
        {
            "donation": {
                "id": donation.pk,
                "status": donation.status,
                "amount": f"{donation.amount:.2f}",
                "currency": donation.currency,
                "donation_type": donation.donation_type,
            }
        },
        status=201,
    )


@csrf_exempt
@require_POST
def foster_applications_view(request: HttpRequest) -> HttpResponse:
    application_request = _validate(request, FosterApplicationRequest)
    if isinstance(application_request, JsonResponse):
        return application_request

    application = community.submit_foster_application(application_request)
    return JsonResponse(
        {"application": {"id": application.pk, "status": application.status}}, status=201
    )

def _lookup_add_ons(codes: list[str]) -> list[AddOnValue] | JsonResponse:
    catalog = {
        add_on.code: add_on for add_on in AddOn.objects.filter(code__in=codes, is_active=True)
    }
    missing = sorted(set(codes) - set(catalog))
    if missing:
        return _error_response("unknown_add_on", f"Unknown add-ons: {', '.join(missing)}", status=400)
    return [
        AddOnValue(id=code, name=catalog[code].name, price=round2(catalog[code].price))
        for code in dict.fromkeys(codes)
    ]


def _cart_response(cart: Cart, status: int = 200) -> JsonResponse:
    lines = []
    for item in cart.items:
        total = compute_order_total(item, item.payment_type)
        if isinstance(total, PricingFailure):
            return _failure_response(total)
        lines.append(
            {
                "pet_id": item.pet_id,
                "pet_name": item.pet_name,
                "add_ons": [
                    {"id": add_on.id, "name": add_on.name, "price": f"{add_on.price:.2f}"}
                    for add_on in item.add_ons
                ],
                "shipping": (
                    {
                        "id": item.shipping.id,
                        "name": item.shipping.name,
                        "price": f"{item.shipping.price:.2f}",
                    }
                    if item.shipping
                    else None
                ),
                "totals": _order_total_payload(total).model_dump(mode="json"),
            }
        )

    cart_total = compute_cart_total(cart.items)
    if isinstance(cart_total, PricingFailure):
        return _failure_response(cart_total)
    return JsonResponse(
        {
            "items": lines,
            "total_due_now": f"{cart_total:.2f}",
            "display_total": format_price(to_display_amount(cart_total)),
        },
        status=status,
    )


def _ground_quote_payload(quote: TransportQuote) -> GroundQuoteResponse:
    return GroundQuoteResponse(
        distance_km=quote.distance_km,
        distance_miles=quote.distance_miles,
        estimated_time=quote.estimated_time,
        tier=quote.tier,
        tier_name=quote.tier_name,
        has_companion=quote.has_companion,
        base_shipping_price=quote.base_shipping_price,
        companion_fee=quote.companion_fee,
        total_price=quote.total_price,
    )


def _air_quote_payload(quote: AirQuote) -> AirQuoteResponse:
    return AirQuoteResponse(
        destination_id=quote.destination_id,
        destination_label=quote.destination_label,
        shipping_price=quote.shipping_price,
        flight_nanny_price=quote.flight_nanny_price,
        total_price=quote.total_price,
        breakdown=quote.breakdown(),
    )


def _order_total_payload(total: OrderTotal) -> OrderTotalResponse:
    return OrderTotalResponse(
        payment_type=total.payment_type,
        full_price=total.full_price,
        base_amount=total.base_amount,
        add_ons_total=total.add_ons_total,
        shipping_total=total.shipping_total,
        due_now=total.due_now,
        remaining_balance=total.remaining_balance,
        breakdown=total.breakdown,
        display_due_now=format_price(to_display_amount(total.due_now)),
    )


def _validate(request: HttpRequest, schema: type[BaseModel]) -> Any:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _failure_response(failure: PricingFailure) -> JsonResponse:
    return _error_response(failure.reason.value, failure.message, status=FAILURE_STATUS[failure.reason])


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
