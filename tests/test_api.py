from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest
from django.contrib.auth import get_user_model

from marketplace.models import Donation, FosterApplication, Order, PaymentProof, Pet
from marketplace.services.types import PricingFailure, PricingFailureReason

UK_ACCOUNT = {
    "id": "uk",
    "region": "United Kingdom",
    "subtitle": "BACS / Faster Payments",
    "currency": "GBP",
    "details": [{"label": "Sort Code", "value": "00-00-00"}],
}


def _post(client, url: str, payload: dict):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


def _put(client, url: str, payload: dict):
    return client.put(url, data=json.dumps(payload), content_type="application/json")


@pytest.mark.django_db
def test_health_endpoint_returns_pet_counts(api_client, pet) -> None:
    Pet.objects.create(
        name="Milo",
        pet_type="cat",
        adoption_fee=Decimal("800.00"),
        status=Pet.Status.ADOPTED,
        canonical_key="MILO|CAT||",
    )

    response = api_client.get("/api/v1/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["pets"] == {"total": 2, "available": 1}


def test_locations_lists_countries_and_regions(api_client) -> None:
    response = api_client.get("/api/v1/locations")

    assert response.status_code == 200
    countries = {country["id"]: country for country in response.json()["countries"]}
    assert {"id": "us-ny", "name": "New York"} in countries["usa"]["regions"]


def test_air_cargo_countries_are_grouped_by_region(api_client) -> None:
    response = api_client.get("/api/v1/air-cargo/countries")

    assert response.status_code == 200
    regions = {group["region"]: group["countries"] for group in response.json()["regions"]}
    assert {"id": "uk", "label": "United Kingdom", "price": "1150"} in regions["Europe"]


def test_ground_quote_between_regions(api_client, ground_config) -> None:
    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {
            "origin": {"country_id": "usa", "region_id": "us-ca"},
            "destination": {"country_id": "usa", "region_id": "us-nv"},
            "tier": "private",
            "has_companion": True,
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["tier_name"] == "Private VIP Transport"
    assert Decimal(payload["total_price"]) == Decimal(payload["base_shipping_price"]) + Decimal(
        payload["companion_fee"]
    )


def test_ground_quote_from_pet_origin(api_client, ground_config, pet) -> None:
    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {"pet_id": pet.pk, "destination": {"country_id": "usa", "region_id": "us-ny"}},
    )

    assert response.status_code == 200
    assert response.json()["tier"] == "standard"


def test_ground_quote_over_distance_limit(api_client, ground_config, pet) -> None:
    ground_config.max_ground_distance_km = 1000
    ground_config.save()

    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {"pet_id": pet.pk, "destination": {"country_id": "usa", "region_id": "us-ny"}},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "distance_exceeds_limit"


@pytest.mark.django_db
def test_ground_quote_without_configuration(api_client, pet) -> None:
    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {"pet_id": pet.pk, "destination": {"country_id": "usa", "region_id": "us-ny"}},
    )

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "configuration_unavailable"


def test_ground_quote_for_pet_without_origin(api_client, ground_config, pet) -> None:
    pet.origin_country_id = ""
    pet.origin_region_id = ""
    pet.save()

    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {"pet_id": pet.pk, "destination": {"country_id": "usa", "region_id": "us-ny"}},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_input"


@pytest.mark.django_db
def test_ground_quote_for_unknown_pet(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {"pet_id": 999, "destination": {"country_id": "usa", "region_id": "us-ny"}},
    )

    assert response.status_code == 404


def test_ground_quote_validation_error_returns_400(api_client) -> None:
    response = _post(api_client, "/api/v1/quotes/ground", {"tier": "standard"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_invalid_json_returns_400(api_client) -> None:
    response = api_client.post(
        "/api/v1/quotes/air", data="{not json", content_type="application/json"
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json"


def test_ground_quote_maps_failures_from_service(api_client, mocker) -> None:
    service = mocker.Mock()
    service.ground_quote.return_value = PricingFailure(
        PricingFailureReason.CONFIGURATION_UNAVAILABLE, "Ground transport is disabled"
    )
    mocker.patch("marketplace.views.get_shipping_service", return_value=service)

    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {
            "origin": {"country_id": "usa", "region_id": "us-ca"},
            "destination": {"country_id": "usa", "region_id": "us-ny"},
        },
    )

    assert response.status_code == 503
    assert response.json()["error"]["message"] == "Ground transport is disabled"
    service.ground_quote.assert_called_once()


def test_air_quote_itemizes_flight_nanny(api_client) -> None:
    response = _post(
        api_client, "/api/v1/quotes/air", {"destination_country_id": "uk", "flight_nanny": True}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_price"] == "1650.00"
    assert payload["breakdown"] == {"shipping": "1150.00", "flight_nanny": "500.00"}


def test_air_quote_unknown_destination(api_client) -> None:
    response = _post(api_client, "/api/v1/quotes/air", {"destination_country_id": "atlantis"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "destination_not_supported"


def test_order_total_for_deposit(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/pricing/order-total",
        {
            "line_item": {"pet_id": "1", "pet_name": "Luna", "base_price": "1000"},
            "payment_type": "deposit",
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["due_now"] == "300.00"
    assert payload["remaining_balance"] == "700.00"
    assert payload["display_due_now"] == "$300.00"


def test_cart_flow_through_manual_checkout(api_client, settings, pet, add_ons, mailoutbox) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]

    response = _post(
        api_client,
        "/api/v1/cart/items",
        {"pet_id": pet.pk, "payment_type": "deposit", "add_on_codes": ["pedigree"]},
    )
    assert response.status_code == 201
    assert response.json()["total_due_now"] == "375.00"

    response = _put(
        api_client,
        f"/api/v1/cart/items/{pet.pk}/shipping",
        {"method": "air", "destination_country_id": "uk", "flight_nanny": True},
    )
    assert response.status_code == 200
    line = response.json()["items"][0]
    assert line["shipping"]["name"] == "Air Cargo to United Kingdom + Flight Nanny ($500.00)"
    assert line["totals"]["due_now"] == "2025.00"
    assert line["totals"]["remaining_balance"] == "700.00"

    response = _put(
        api_client,
        f"/api/v1/cart/items/{pet.pk}/add-ons",
        {"add_on_codes": ["pedigree", "hcm-testing"]},
    )
    assert response.json()["total_due_now"] == "2175.00"

    response = _post(
        api_client,
        "/api/v1/checkout",
        {
            "name": "Jamie Doe",
            "email": "jamie@example.com",
            "address": "1 Main Street, Austin, TX",
            "payment_method": "bank_uk",
            "accept_terms": True,
        },
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["order"]["total_due_now"] == "2175.00"
    assert payload["order"]["payment_method_label"] == "UK BACS/Faster Payments"
    assert payload["instructions"]["currency"] == "GBP"
    assert len(mailoutbox) == 1

    assert api_client.get("/api/v1/cart").json()["items"] == []


def test_cart_ground_shipping_is_priced_server_side(api_client, ground_config, pet) -> None:
    _post(api_client, "/api/v1/cart/items", {"pet_id": pet.pk})

    response = _put(
        api_client,
        f"/api/v1/cart/items/{pet.pk}/shipping",
        {"method": "ground", "destination": {"country_id": "usa", "region_id": "us-nv"}},
    )

    assert response.status_code == 200
    shipping = response.json()["items"][0]["shipping"]
    assert shipping["id"] == "ground_standard"
    assert shipping["name"].startswith("Standard Ground Transport (")


def test_cart_rejects_unknown_add_on(api_client, pet, add_ons) -> None:
    response = _post(
        api_client, "/api/v1/cart/items", {"pet_id": pet.pk, "add_on_codes": ["unicorn-horn"]}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "unknown_add_on"


def test_cart_item_removal(api_client, pet) -> None:
    _post(api_client, "/api/v1/cart/items", {"pet_id": pet.pk})

    assert api_client.delete(f"/api/v1/cart/items/{pet.pk}").status_code == 200
    assert api_client.delete(f"/api/v1/cart/items/{pet.pk}").status_code == 404


def test_adopted_pet_cannot_be_added(api_client, pet) -> None:
    pet.status = Pet.Status.ADOPTED
    pet.save()

    response = _post(api_client, "/api/v1/cart/items", {"pet_id": pet.pk})

    assert response.status_code == 409


@pytest.mark.django_db
def test_checkout_with_empty_cart(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/checkout",
        {
            "name": "Jamie Doe",
            "email": "jamie@example.com",
            "address": "1 Main Street, Austin, TX",
            "payment_method": "stripe",
            "accept_terms": True,
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "empty_cart"


def test_checkout_requires_accepted_terms(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/checkout",
        {
            "name": "Jamie Doe",
            "email": "jamie@example.com",
            "address": "1 Main Street, Austin, TX",
            "payment_method": "stripe",
            "accept_terms": False,
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_checkout_with_unconfigured_processor(api_client, settings, pet) -> None:
    settings.STRIPE_SECRET_KEY = ""
    _post(api_client, "/api/v1/cart/items", {"pet_id": pet.pk})

    response = _post(
        api_client,
        "/api/v1/checkout",
        {
            "name": "Jamie Doe",
            "email": "jamie@example.com",
            "address": "1 Main Street, Austin, TX",
            "payment_method": "stripe",
            "accept_terms": True,
        },
    )

    assert response.status_code == 503
    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_proof_submission_and_staff_review(api_client) -> None:
    order = Order.objects.create(
        customer_name="Jamie Doe",
        customer_email="jamie@example.com",
        customer_address="1 Main Street, Austin, TX",
        payment_method=Order.PaymentMethod.USDT,
        total_due_now=Decimal("300.00"),
    )

    response = _post(
        api_client,
        f"/api/v1/orders/{order.reference}/proofs",
        {"amount": "300.00", "transaction_reference": "0xabc123"},
    )
    assert response.status_code == 201
    assert response.json()["order_status"] == "proof_submitted"
    proof = PaymentProof.objects.get(order=order)

    review_url = f"/api/v1/orders/{order.reference}/proofs/{proof.pk}/review"
    assert _post(api_client, review_url, {"decision": "approve"}).status_code == 403

    staff = get_user_model().objects.create_user("staff", password="pw", is_staff=True)
    api_client.force_login(staff)
    response = _post(api_client, review_url, {"decision": "approve", "notes": "Seen on chain"})

    assert response.status_code == 200
    assert response.json() == {
        "proof": {"id": proof.pk, "status": "approved"},
        "order_status": "paid",
    }
    assert _post(api_client, review_url, {"decision": "reject"}).status_code == 409


@pytest.mark.django_db
def test_proof_for_unknown_order(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/orders/00000000-0000-0000-0000-000000000000/proofs",
        {"amount": "300.00", "transaction_reference": "0xabc123"},
    )

    assert response.status_code == 404


def test_ground_quote_rejects_pet_and_origin_together(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/quotes/ground",
        {
            "pet_id": 1,
            "origin": {"country_id": "usa", "region_id": "us-tx"},
            "destination": {"country_id": "usa", "region_id": "us-ny"},
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def _card_order(reference_id: str = "pi_1") -> Order:
    return Order.objects.create(
        customer_name="Jamie Doe",
        customer_email="jamie@example.com",
        customer_address="1 Main Street, Austin, TX",
        payment_method=Order.PaymentMethod.STRIPE,
        total_due_now=Decimal("1321.80"),
        processor_reference=reference_id,
    )


@pytest.mark.django_db
def test_confirm_card_payment(api_client, settings, mocker, mailoutbox) -> None:
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    order = _card_order()
    mocker.patch(
        "marketplace.services.payments.httpx.get",
        return_value=httpx.Response(
            200,
            json={
                "id": "pi_1",
                "status": "succeeded",
                "metadata": {"order_reference": str(order.reference)},
            },
            request=httpx.Request("GET", "https://api.stripe.com/v1/payment_intents/pi_1"),
        ),
    )

    response = _post(api_client, f"/api/v1/orders/{order.reference}/payment/confirm", {})

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "paid"
    order.refresh_from_db()
    assert order.status == Order.Status.PAID
    assert mailoutbox[-1].to == ["jamie@example.com"]


@pytest.mark.django_db
def test_confirm_payment_that_has_not_settled(api_client, settings, mocker) -> None:
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    order = _card_order()
    mocker.patch(
        "marketplace.services.payments.httpx.get",
        return_value=httpx.Response(
            200,
            json={
                "id": "pi_1",
                "status": "processing",
                "metadata": {"order_reference": str(order.reference)},
            },
            request=httpx.Request("GET", "https://api.stripe.com/v1/payment_intents/pi_1"),
        ),
    )

    response = _post(api_client, f"/api/v1/orders/{order.reference}/payment/confirm", {})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "payment_not_confirmed"
    order.refresh_from_db()
    assert order.status == Order.Status.PENDING_PAYMENT


@pytest.mark.django_db
def test_donation_is_recorded_for_verification(api_client, settings, mailoutbox) -> None:
    settings.ORDER_NOTIFICATION_ADMIN_EMAILS = ["staff@example.com"]

    response = _post(
        api_client,
        "/api/v1/donations",
        {
            "donor_name": "Sam Lee",
            "donor_email": "sam@example.com",
            "amount": "50",
            "donation_type": "monthly",
            "message": "For the kittens",
        },
    )

    assert response.status_code == 201
    body = response.json()["donation"]
    assert body["status"] == "pending"
    assert body["amount"] == "50.00"
    donation = Donation.objects.get(pk=body["id"])
    assert donation.donation_type == Donation.DonationType.MONTHLY
    assert mailoutbox[0].to == ["staff@example.com"]


def test_donation_amount_must_be_positive(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/donations",
        {"donor_name": "Sam Lee", "donor_email": "sam@example.com", "amount": "0"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_foster_application_is_submitted(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/foster-applications",
        {
            "applicant_name": "Alex Kim",
            "applicant_email": "alex@example.com",
            "applicant_phone": "+1 555 010 0200",
            "address": "22 Oak Avenue, Portland, OR",
            "housing_type": "house",
            "has_yard": True,
            "availability": "long-term",
            "preferred_pet_types": ["cat", "dog", "cat"],
        },
    )

    assert response.status_code == 201
    application = FosterApplication.objects.get(pk=response.json()["application"]["id"])
    assert application.status == FosterApplication.Status.PENDING
    assert application.preferred_pet_types == ["cat", "dog"]


def test_foster_application_requires_a_reachable_phone(api_client) -> None:
    response = _post(
        api_client,
        "/api/v1/foster-applications",
        {
            "applicant_name": "Alex Kim",
            "applicant_email": "alex@example.com",
            "applicant_phone": "555",
            "address": "22 Oak Avenue, Portland, OR",
            "housing_type": "house",
            "availability": "short-term",
        },
    )

    assert response.status_code == 400
