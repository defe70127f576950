from __future__ import annotations

from decimal import Decimal

import pytest

from marketplace.exceptions import (
    EmptyCartError,
    ExternalServiceError,
    PaymentConfirmationError,
    PaymentProviderNotConfiguredError,
    PetUnavailableError,
    ShippingUnavailableError,
)
from marketplace.models import Order, OrderItem, Pet
from marketplace.schemas import CartShippingRequest, CheckoutRequest
from marketplace.services.cart import Cart
from marketplace.services.checkout import CheckoutService
from marketplace.services.payments import PaymentConfirmation, PaymentSession
from marketplace.services.shipping import ShippingQuoteService
from marketplace.services.types import AddOn, LineItem, ShippingSelection

UK_ACCOUNT = {
    "id": "uk",
    "region": "United Kingdom",
    "subtitle": "BACS / Faster Payments",
    "currency": "GBP",
    "details": [{"label": "Sort Code", "value": "00-00-00"}],
}


class FakeSession(dict):
    modified = False


def _details(payment_method: str = "bank_uk") -> CheckoutRequest:
    return CheckoutRequest(
        name="Jamie Doe",
        email="jamie@example.com",
        phone="+1 555 0100",
        address="1 Main Street, Austin, TX",
        payment_method=payment_method,
        accept_terms=True,
    )


def _cart(pet: Pet, **kwargs) -> Cart:
    cart = Cart(FakeSession())
    cart.add(
        LineItem(
            pet_id=str(pet.pk),
            pet_name=pet.name,
            base_price=kwargs.pop("base_price", pet.adoption_fee),
            add_ons=(AddOn(id="pedigree", name="Pedigree Certificate", price=Decimal("75.00")),),
            shipping=ShippingSelection(
                id="ground_standard", name="Standard Ground Transport", price=Decimal("246.80")
            ),
            **kwargs,
        )
    )
    return cart


def test_reservation_with_bank_transfer(settings, pet, mailoutbox) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    cart = _cart(pet, is_reservation=True)

    result = CheckoutService().place_order(cart, _details())

    order = result.order
    assert order.status == Order.Status.PENDING_PAYMENT
    assert order.total_due_now == Decimal("621.80")
    assert result.instructions is not None
    assert result.instructions.currency == "GBP"
    assert result.session is None

    item = OrderItem.objects.get(order=order)
    assert item.is_reservation is True
    assert item.base_amount == Decimal("300.00")
    assert item.remaining_balance == Decimal("700.00")
    assert item.add_ons == [{"id": "pedigree", "name": "Pedigree Certificate", "price": "75.00"}]

    assert len(cart) == 0
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["jamie@example.com"]
    assert "Remaining balance: $700.00" in mailoutbox[0].body


def test_card_payment_hands_off_to_processor(pet, mocker) -> None:
    gateway = mocker.Mock()
    gateway.create_session.return_value = PaymentSession(
        provider="stripe", session_id="pi_1", status="requires_payment_method", client_secret="secret"
    )
    notifier = mocker.Mock()
    service = CheckoutService(notifier=notifier, gateway_factory=lambda method: gateway)

    result = service.place_order(_cart(pet), _details("stripe"))

    request = gateway.create_session.call_args.args[0]
    assert request.amount == Decimal("1321.80")
    assert request.order_reference == str(result.order.reference)
    result.order.refresh_from_db()
    assert result.order.processor_reference == "pi_1"
    notifier.order_placed.assert_called_once_with(result.order)


def test_checkout_reprices_from_catalog(settings, pet) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    cart = _cart(pet, base_price=Decimal("1.00"))

    result = CheckoutService().place_order(cart, _details())

    assert result.order.total_due_now == Decimal("1321.80")


def test_unavailable_pet_blocks_checkout(settings, pet) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    cart = _cart(pet)
    pet.status = Pet.Status.ADOPTED
    pet.save()

    with pytest.raises(PetUnavailableError):
        CheckoutService().place_order(cart, _details())
    assert Order.objects.count() == 0
    assert len(cart) == 1


@pytest.mark.django_db
def test_empty_cart_is_rejected() -> None:
    with pytest.raises(EmptyCartError):
        CheckoutService().place_order(Cart(FakeSession()), _details())


def test_unconfigured_rail_writes_nothing(settings, pet) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = []

    with pytest.raises(PaymentProviderNotConfiguredError):
        CheckoutService().place_order(_cart(pet), _details("bank_eu"))
    assert Order.objects.count() == 0


def test_processor_failure_rolls_back_the_order(pet, mocker) -> None:
    gateway = mocker.Mock()
    gateway.create_session.side_effect = ExternalServiceError("stripe request failed")
    service = CheckoutService(notifier=mocker.Mock(), gateway_factory=lambda method: gateway)
    cart = _cart(pet)

    for _ in range(2):
        with pytest.raises(ExternalServiceError):
            service.place_order(cart, _details("stripe"))

    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0
    assert len(cart) == 1
    service.notifier.order_placed.assert_not_called()


NEVADA_GROUND = {
    "method": "ground",
    "destination": {"country_id": "usa", "region_id": "us-nv"},
    "tier": "standard",
    "has_companion": False,
    "destination_country_id": None,
    "flight_nanny": False,
}


def _cart_with_quoted_shipping(pet: Pet, price: str) -> Cart:
    cart = Cart(FakeSession())
    cart.add(
        LineItem(
            pet_id=str(pet.pk),
            pet_name=pet.name,
            base_price=pet.adoption_fee,
            shipping=ShippingSelection(
                id="ground_standard",
                name="Standard Ground Transport (370 km)",
                price=Decimal(price),
                quote=NEVADA_GROUND,
            ),
        )
    )
    return cart


def test_checkout_requotes_shipping(settings, ground_config, pet) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    current = ShippingQuoteService().select_shipping(
        pet, CartShippingRequest.model_validate(NEVADA_GROUND)
    )
    cart = _cart_with_quoted_shipping(pet, "1.00")

    result = CheckoutService().place_order(cart, _details())

    item = OrderItem.objects.get(order=result.order)
    assert current.price != Decimal("1.00")
    assert item.shipping_total == current.price
    assert result.order.total_due_now == Decimal("1000.00") + current.price


def test_checkout_refuses_shipping_that_can_no_longer_be_quoted(settings, pet) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    cart = _cart_with_quoted_shipping(pet, "98.72")

    with pytest.raises(ShippingUnavailableError):
        CheckoutService().place_order(cart, _details())
    assert Order.objects.count() == 0
    assert len(cart) == 1


def _paid_by_card(pet, mocker, **confirmation):
    gateway = mocker.Mock()
    gateway.create_session.return_value = PaymentSession(
        provider="stripe", session_id="pi_1", status="requires_payment_method"
    )
    service = CheckoutService(notifier=mocker.Mock(), gateway_factory=lambda method: gateway)
    order = service.place_order(_cart(pet), _details("stripe")).order
    gateway.confirm_payment.return_value = PaymentConfirmation(
        provider="stripe",
        payment_id="pi_1",
        status=confirmation.get("status", "succeeded"),
        order_reference=confirmation.get("order_reference", str(order.reference)),
        is_completed=confirmation.get("is_completed", True),
    )
    return service, gateway, order


def test_confirmed_processor_payment_marks_order_paid(pet, mocker) -> None:
    service, gateway, order = _paid_by_card(pet, mocker)

    paid = service.confirm_payment(order)

    gateway.confirm_payment.assert_called_once_with("pi_1")
    order.refresh_from_db()
    assert order.status == Order.Status.PAID
    service.notifier.payment_confirmed.assert_called_once_with(paid)

    assert service.confirm_payment(order).status == Order.Status.PAID
    assert gateway.confirm_payment.call_count == 1


def test_payment_for_another_order_is_refused(pet, mocker) -> None:
    service, _, order = _paid_by_card(
        pet, mocker, order_reference="00000000-0000-0000-0000-000000000000"
    )

    with pytest.raises(PaymentConfirmationError):
        service.confirm_payment(order)
    order.refresh_from_db()
    assert order.status == Order.Status.PENDING_PAYMENT


def test_unsettled_payment_is_not_confirmed(pet, mocker) -> None:
    service, _, order = _paid_by_card(
        pet, mocker, status="requires_payment_method", is_completed=False
    )

    with pytest.raises(PaymentConfirmationError):
        service.confirm_payment(order, payment_id="pi_1")
    order.refresh_from_db()
    assert order.status == Order.Status.PENDING_PAYMENT


def test_transfers_are_not_confirmed_through_processors(settings, pet, mocker) -> None:
    settings.BANK_TRANSFER_ACCOUNTS = [UK_ACCOUNT]
    order = CheckoutService(notifier=mocker.Mock()).place_order(_cart(pet), _details()).order

    with pytest.raises(PaymentConfirmationError):
        CheckoutService().confirm_payment(order)
