"""Presentation-only currency helpers.

Amounts stored on orders and sent to payment processors are always in the
base currency; these helpers never feed back into them.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings

from marketplace.services.money import round2, to_decimal

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CAD": "CA$", "AUD": "A$"}


def to_display_amount(amount: Decimal | float, exchange_rate: Decimal | float | None = None) -> Decimal:
    rate = to_decimal(settings.DISPLAY_EXCHANGE_RATE if exchange_rate is None else exchange_rate)
    if rate <= 0:
        raise ValueError("exchange_rate must be positive")
    return round2(to_decimal(amount) * rate)


def format_price(amount: Decimal | float, currency: str | None = None) -> str:
    code = (currency or settings.BASE_CURRENCY).upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    value = f"{round2(amount):,.2f}"
    return f"{symbol}{value}" if symbol else f"{value} {code}"
