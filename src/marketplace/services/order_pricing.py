from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from django.conf import settings

from marketplace.services.money import ZERO, round2, to_decimal
from marketplace.services.types import (
    LineItem,
    OrderTotal,
    PricingFailure,
    PricingFailureReason,
)

PAYMENT_TYPES = ("full", "deposit")


def reservation_deposit_fraction() -> Decimal:
    return to_decimal(settings.RESERVATION_DEPOSIT_FRACTION)


def compute_order_total(
    line_item: LineItem,
    payment_type: str,
    deposit_fraction: Decimal | float | None = None,
) -> OrderTotal | PricingFailure:
    """Price one cart line as it is due at checkout.

    ``deposit_fraction`` defaults to the configured reservation deposit
    fraction. Every monetary sub-step is rounded to cents so displayed lines
    add up to the displayed total.
    """
    if payment_type not in PAYMENT_TYPES:
        return PricingFailure(
            PricingFailureReason.INVALID_INPUT, f"Unknown payment type: {payment_type}"
        )

    fraction = (
        reservation_deposit_fraction() if deposit_fraction is None else to_decimal(deposit_fraction)
    )
    if not ZERO < fraction <= 1:
        return PricingFailure(
            PricingFailureReason.INVALID_INPUT, "Deposit fraction must be within (0, 1]"
        )

    full_price = round2(line_item.base_price)
    if full_price < 0:
        return PricingFailure(PricingFailureReason.INVALID_INPUT, "Base price must be non-negative")

    base_amount = round2(full_price * fraction) if payment_type == "deposit" else full_price
    add_ons_total = round2(sum((to_decimal(add_on.price) for add_on in line_item.add_ons), ZERO))
    shipping_total = round2(line_item.shipping.price) if line_item.shipping else ZERO
    due_now = round2(base_amount + shipping_total + add_ons_total)

    breakdown = {
        "deposit" if payment_type == "deposit" else "adoption_fee": base_amount,
        "shipping": shipping_total,
        "add_ons": add_ons_total,
    }

    return OrderTotal(
        payment_type=payment_type,
        full_price=full_price,
        base_amount=base_amount,
        add_ons_total=add_ons_total,
        shipping_total=shipping_total,
        due_now=due_now,
        remaining_balance=round2(full_price - base_amount) if payment_type == "deposit" else None,
        breakdown=breakdown,
    )


def compute_cart_total(items: Iterable[LineItem]) -> Decimal | PricingFailure:
    total = ZERO
    for item in items:
        result = compute_order_total(item, item.payment_type)
        if isinstance(result, PricingFailure):
            return result
        total += result.due_now
    return round2(total)
