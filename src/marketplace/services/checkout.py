from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from django.conf import settings
from django.db import transaction
from pydantic import ValidationError

from marketplace.exceptions import (
    EmptyCartError,
    PaymentConfirmationError,
    PetUnavailableError,
    ShippingUnavailableError,
)
from marketplace.models import Order, OrderItem, Pet
from marketplace.schemas import CartShippingRequest, CheckoutRequest
from marketplace.services.cart import Cart
from marketplace.services.money import ZERO, round2
from marketplace.services.notifications import OrderNotifier
from marketplace.services.order_pricing import compute_order_total
from marketplace.services.payments import (
    ManualPaymentInstructions,
    PaymentGateway,
    PaymentRequest,
    PaymentSession,
    get_gateway,
    manual_payment_instructions,
)
from marketplace.services.shipping import ShippingQuoteService
from marketplace.services.types import (
    LineItem,
    OrderTotal,
    PricingFailure,
    ShippingSelection,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PricedLine:
    item: LineItem
    total: OrderTotal


@dataclass(slots=True, frozen=True)
class CheckoutResult:
    order: Order
    instructions: ManualPaymentInstructions | None = None
    session: PaymentSession | None = None


class CheckoutService:
    """Walks a cart through details, payment and confirmation.

    Prices are recomputed at checkout so a stale cart cannot charge an
    outdated adoption fee or shipping quote.
    """

    def __init__(
        self,
        notifier: OrderNotifier | None = None,
        gateway_factory=get_gateway,
        shipping_service: ShippingQuoteService | None = None,
    ) -> None:
        self.notifier = notifier or OrderNotifier()
        self.gateway_factory = gateway_factory
        self.shipping_service = shipping_service or ShippingQuoteService()

    def price_cart(self, cart: Cart) -> list[PricedLine]:
        items = cart.items
        if not items:
            raise EmptyCartError("Your cart is empty")

        pets = Pet.objects.in_bulk([int(item.pet_id) for item in items])
        priced: list[PricedLine] = []
        for item in items:
            pet = pets.get(int(item.pet_id))
            if pet is None or pet.status != Pet.Status.AVAILABLE:
                raise PetUnavailableError(f"{item.pet_name or item.pet_id} is no longer available")

            current = replace(
                item,
                pet_name=pet.name,
                base_price=round2(pet.adoption_fee),
                shipping=self._requote(pet, item.shipping),
            )
            total = compute_order_total(current, current.payment_type)
            if isinstance(total, PricingFailure):
                raise PetUnavailableError(f"{pet.name} cannot be priced: {total.message}")
            priced.append(PricedLine(item=current, total=total))
        return priced

    def place_order(self, cart: Cart, details: CheckoutRequest) -> CheckoutResult:
        priced = self.price_cart(cart)
        method_label = Order.PaymentMethod(details.payment_method).label

        # Resolve the payment rail before writing anything
        instructions: ManualPaymentInstructions | None = None
        gateway: PaymentGateway | None = None
        if details.payment_method in {"usdt", "bank_uk", "bank_usa", "bank_eu"}:
            instructions = manual_payment_instructions(details.payment_method, method_label)
        else:
            gateway = self.gateway_factory(details.payment_method)
            gateway.ensure_configured()

        # A processor failure rolls the order back, so the buyer can retry the same cart
        session: PaymentSession | None = None
        with transaction.atomic():
            order = Order.objects.create(
                customer_name=details.name,
                customer_email=details.email,
                customer_phone=details.phone or "",
                customer_address=details.address,
                customer_message=details.message or "",
                payment_method=details.payment_method,
                currency=settings.BASE_CURRENCY,
                total_due_now=round2(sum((line.total.due_now for line in priced), ZERO)),
            )
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        pet_id=int(line.item.pet_id),
                        is_reservation=line.item.is_reservation,
                        full_price=line.total.full_price,
                        base_amount=line.total.base_amount,
                        shipping_method=line.item.shipping.name if line.item.shipping else "",
                        shipping_total=line.total.shipping_total,
                        add_ons=[
                            {"id": add_on.id, "name": add_on.name, "price": str(round2(add_on.price))}
                            for add_on in line.item.add_ons
                        ],
                        add_ons_total=line.total.add_ons_total,
                        due_now=line.total.due_now,
                        remaining_balance=line.total.remaining_balance,
                    )
                    for line in priced
                ]
            )

            if gateway is not None:
                session = gateway.create_session(
                    PaymentRequest(
                        order_reference=str(order.reference),
                        amount=order.total_due_now,
                        currency=order.currency,
                        description=f"Pet adoption: {', '.join(line.item.pet_name for line in priced)}",
                        customer_email=order.customer_email,
                    )
                )
                order.processor_reference = session.session_id
                order.save(update_fields=["processor_reference", "updated_at"])

        logger.info(
            "Order %s placed: %s items, %s %s via %s",
            order.reference,
            len(priced),
            order.total_due_now,
            order.currency,
            order.payment_method,
        )

        self.notifier.order_placed(order)
        cart.clear()
        return CheckoutResult(order=order, instructions=instructions, session=session)

    def confirm_payment(self, order: Order, payment_id: str = "") -> Order:
        """Mark a card or wallet order paid once its processor reports the payment settled.

        `payment_id` defaults to the processor reference stored at checkout.
        Checkout.com reports a payment id that differs from its session id,
        so callers pass the one the processor returned to the storefront.
        """
        if order.is_manual_payment:
            raise PaymentConfirmationError("Transfers are confirmed by reviewing a payment proof")
        if order.status == Order.Status.PAID:
            return order
        if order.status != Order.Status.PENDING_PAYMENT:
            raise PaymentConfirmationError(f"Order is {order.status}; no payment is expected")

        payment_id = payment_id or order.processor_reference
        if not payment_id:
            raise PaymentConfirmationError("Order has no processor payment to confirm")

        confirmation = self.gateway_factory(order.payment_method).confirm_payment(payment_id)
        if confirmation.order_reference != str(order.reference):
            raise PaymentConfirmationError(
                f"Payment {payment_id} does not belong to order {order.reference}"
            )
        if not confirmation.is_completed:
            raise PaymentConfirmationError(f"Payment {payment_id} is {confirmation.status}")

        with transaction.atomic():
            locked = Order.objects.select_for_update().get(pk=order.pk)
            if locked.status == Order.Status.PAID:
                return locked
            locked.status = Order.Status.PAID
            locked.save(update_fields=["status", "updated_at"])

        logger.info(
            "Order %s paid via %s (%s)", locked.reference, confirmation.provider, payment_id
        )
        self.notifier.payment_confirmed(locked)
        return locked

    def _requote(self, pet: Pet, shipping: ShippingSelection | None) -> ShippingSelection | None:
        if shipping is None or shipping.quote is None:
            return shipping

        try:
            request = CartShippingRequest.model_validate(shipping.quote)
        except ValidationError as exc:
            raise ShippingUnavailableError(f"Shipping for {pet.name} must be chosen again") from exc

        current = self.shipping_service.select_shipping(pet, request)
        if isinstance(current, PricingFailure):
            raise ShippingUnavailableError(
                f"Shipping for {pet.name} is no longer available: {current.message}"
            )
        if current is not None and current.price != shipping.price:
            logger.info(
                "Shipping for pet %s repriced from %s to %s", pet.pk, shipping.price, current.price
            )
        return current
