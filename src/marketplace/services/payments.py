"""Payment processor handoff.

Card and wallet rails create a session with the external processor and
return what the storefront needs to redirect or mount the processor's
widget. Bank transfer and USDT rails return static instructions and wait
for a proof of payment.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from django.conf import settings

from marketplace.exceptions import ExternalServiceError, PaymentProviderNotConfiguredError
from marketplace.services.money import round2

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PaymentRequest:
    order_reference: str
    amount: Decimal
    currency: str
    description: str
    customer_email: str


@dataclass(slots=True, frozen=True)
class PaymentSession:
    provider: str
    session_id: str
    status: str
    redirect_url: str | None = None
    client_secret: str | None = None
    public_key: str | None = None


@dataclass(slots=True, frozen=True)
class PaymentConfirmation:
    """What the processor reports for a payment, read back after the buyer pays."""

    provider: str
    payment_id: str
    status: str
    order_reference: str
    is_completed: bool


@dataclass(slots=True, frozen=True)
class ManualPaymentInstructions:
    method: str
    label: str
    currency: str
    details: list[dict[str, str]] = field(default_factory=list)
    note: str = ""


class PaymentGateway(Protocol):
    provider: str

    def ensure_configured(self) -> None: ...

    def create_session(self, request: PaymentRequest) -> PaymentSession: ...

    def confirm_payment(self, payment_id: str) -> PaymentConfirmation: ...


def to_minor_units(amount: Decimal) -> int:
    return int(round2(amount) * 100)


class _HttpGateway:
    provider = ""
    display_name = ""

    def __init__(self) -> None:
        self.timeout = settings.PAYMENTS_TIMEOUT_SECONDS
        self.retry_count = settings.PAYMENTS_RETRY_COUNT

    @property
    def is_configured(self) -> bool:
        raise NotImplementedError

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise PaymentProviderNotConfiguredError(f"{self.display_name} is not configured")

    def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        return self._send("POST", url, **kwargs)

    def _get(self, url: str, **kwargs: Any) -> dict[str, Any]:
        return self._send("GET", url, **kwargs)

    def _send(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        send = httpx.post if method == "POST" else httpx.get
        for attempt in range(self.retry_count + 1):
            try:
                response = send(url, timeout=self.timeout, **kwargs)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code < 500 or attempt >= self.retry_count:
                    logger.error(
                        "%s request to %s failed with status %s",
                        self.provider,
                        url,
                        exc.response.status_code,
                    )
                    raise ExternalServiceError(f"{self.provider} request failed") from exc
            except httpx.HTTPError as exc:
                if attempt >= self.retry_count:
                    logger.error("%s request to %s failed: %s", self.provider, url, exc)
                    raise ExternalServiceError(f"{self.provider} request failed") from exc
            time.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError(f"{self.provider} request failed")


class StripeGateway(_HttpGateway):
    provider = "stripe"
    display_name = "Stripe"

    def __init__(self) -> None:
        super().__init__()
        self.secret_key = settings.STRIPE_SECRET_KEY
        self.base_url = settings.STRIPE_BASE_URL.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def create_session(self, request: PaymentRequest) -> PaymentSession:
        self.ensure_configured()

        payload = self._post(
            f"{self.base_url}/v1/payment_intents",
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Idempotency-Key": request.order_reference,
            },
            data={
                "amount": str(to_minor_units(request.amount)),
                "currency": request.currency.lower(),
                "automatic_payment_methods[enabled]": "true",
                "description": request.description,
                "receipt_email": request.customer_email,
                "metadata[order_reference]": request.order_reference,
            },
        )
        return PaymentSession(
            provider=self.provider,
            session_id=payload["id"],
            status=payload.get("status", "requires_payment_method"),
            client_secret=payload.get("client_secret"),
        )

    def confirm_payment(self, payment_id: str) -> PaymentConfirmation:
        self.ensure_configured()

        payload = self._get(
            f"{self.base_url}/v1/payment_intents/{quote(payment_id, safe='')}",
            headers={"Authorization": f"Bearer {self.secret_key}"},
        )
        status = payload.get("status", "")
        return PaymentConfirmation(
            provider=self.provider,
            payment_id=payload.get("id", payment_id),
            status=status,
            order_reference=payload.get("metadata", {}).get("order_reference", ""),
            is_completed=status == "succeeded",
        )


class PayPalGateway(_HttpGateway):
    provider = "paypal"
    display_name = "PayPal"

    def __init__(self) -> None:
        super().__init__()
        self.client_id = settings.PAYPAL_CLIENT_ID
        self.secret = settings.PAYPAL_SECRET
        self.base_url = (
            "https://api-m.paypal.com"
            if settings.PAYPAL_MODE == "live"
            else "https://api-m.sandbox.paypal.com"
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)

    def create_session(self, request: PaymentRequest) -> PaymentSession:
        self.ensure_configured()

        token = self._access_token()
        return_base = settings.PAYMENTS_RETURN_BASE_URL.rstrip("/")
        payload = self._post(
            f"{self.base_url}/v2/checkout/orders",
            headers={
                "Authorization": f"Bearer {token}",
                "PayPal-Request-Id": request.order_reference,
            },
            json={
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "amount": {
                            "currency_code": request.currency.upper(),
                            "value": f"{round2(request.amount):.2f}",
                        },
                        "description": request.description,
                        "custom_id": request.order_reference,
                    }
                ],
                "application_context": {
                    "brand_name": settings.PAYPAL_BRAND_NAME,
                    "landing_page": "NO_PREFERENCE",
                    "user_action": "PAY_NOW",
                    "return_url": f"{return_base}/checkout?success=true",
                    "cancel_url": f"{return_base}/checkout?cancelled=true",
                },
            },
        )

        approve_url = next(
            (link["href"] for link in payload.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        return PaymentSession(
            provider=self.provider,
            session_id=payload["id"],
            status=payload.get("status", "CREATED"),
            redirect_url=approve_url,
        )

    def confirm_payment(self, payment_id: str) -> PaymentConfirmation:
        """Capture an approved PayPal order. PayPal only moves money on capture."""
        self.ensure_configured()

        payload = self._post(
            f"{self.base_url}/v2/checkout/orders/{quote(payment_id, safe='')}/capture",
            headers={
                "Authorization": f"Bearer {self._access_token()}",
                "PayPal-Request-Id": f"capture-{payment_id}",
            },
            json={},
        )
        units = payload.get("purchase_units") or [{}]
        captures = units[0].get("payments", {}).get("captures") or [{}]
        status = payload.get("status", "")
        return PaymentConfirmation(
            provider=self.provider,
            payment_id=payload.get("id", payment_id),
            status=status,
            order_reference=captures[0].get("custom_id") or units[0].get("custom_id", ""),
            is_completed=status == "COMPLETED",
        )

    def _access_token(self) -> str:
        return self._post(
            f"{self.base_url}/v1/oauth2/token",
            auth=(self.client_id, self.secret),
            data={"grant_type": "client_credentials"},
        )["access_token"]


CHECKOUTCOM_SETTLED_STATUSES = {"Authorized", "Captured"}


class CheckoutComGateway(_HttpGateway):
    provider = "checkoutcom"
    display_name = "Checkout.com"

    def __init__(self) -> None:
        super().__init__()
        self.secret_key = settings.CHECKOUTCOM_SECRET_KEY
        self.public_key = settings.CHECKOUTCOM_PUBLIC_KEY
        self.base_url = (
            "https://api.checkout.com"
            if settings.CHECKOUTCOM_MODE == "live"
            else "https://api.sandbox.checkout.com"
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def create_session(self, request: PaymentRequest) -> PaymentSession:
        self.ensure_configured()

        return_base = settings.PAYMENTS_RETURN_BASE_URL.rstrip("/")
        payload = self._post(
            f"{self.base_url}/payment-sessions",
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Cako-Idempotency-Key": request.order_reference,
            },
            json={
                "amount": to_minor_units(request.amount),
                "currency": request.currency.upper(),
                "reference": request.order_reference,
                "description": request.description,
                "customer": {"email": request.customer_email},
                "billing": {"address": {"country": "US"}},
                "success_url": f"{return_base}/checkout?payment_status=success",
                "failure_url": f"{return_base}/checkout?payment_status=failed",
                "metadata": {"order_reference": request.order_reference},
                "3ds": {"enabled": True},
            },
        )
        return PaymentSession(
            provider=self.provider,
            session_id=payload["id"],
            status="created",
            redirect_url=payload.get("_links", {}).get("redirect", {}).get("href"),
            client_secret=payload.get("payment_session_token"),
            public_key=self.public_key or None,
        )

    def confirm_payment(self, payment_id: str) -> PaymentConfirmation:
        self.ensure_configured()

        payload = self._get(
            f"{self.base_url}/payments/{quote(payment_id, safe='')}",
            headers={"Authorization": f"Bearer {self.secret_key}"},
        )
        status = payload.get("status", "")
        return PaymentConfirmation(
            provider=self.provider,
            payment_id=payload.get("id", payment_id),
            status=status,
            order_reference=payload.get("reference", ""),
            is_completed=status in CHECKOUTCOM_SETTLED_STATUSES,
        )


GATEWAYS: dict[str, type[_HttpGateway]] = {
    StripeGateway.provider: StripeGateway,
    PayPalGateway.provider: PayPalGateway,
    CheckoutComGateway.provider: CheckoutComGateway,
}


def get_gateway(method: str) -> PaymentGateway:
    try:
        return GATEWAYS[method]()
    except KeyError as exc:
        raise PaymentProviderNotConfiguredError(f"No processor for {method}") from exc


def manual_payment_instructions(method: str, label: str) -> ManualPaymentInstructions:
    """Bank or USDT transfer details. Unconfigured rails are refused, never defaulted."""
    if method == "usdt":
        wallet = settings.USDT_WALLET
        if not wallet.get("wallet_address"):
            raise PaymentProviderNotConfiguredError("USDT payments are not configured")
        return ManualPaymentInstructions(
            method=method,
            label=label,
            currency="USDT",
            details=[
                {"label": "Network", "value": wallet["network"]},
                {"label": "Wallet Address", "value": wallet["wallet_address"]},
            ],
            note="Only send USDT on the listed network. Other networks will result in loss of funds.",
        )

    bank_id = method.removeprefix("bank_")
    account = next(
        (account for account in settings.BANK_TRANSFER_ACCOUNTS if account.get("id") == bank_id),
        None,
    )
    if account is None:
        raise PaymentProviderNotConfiguredError(f"{label} is not configured")
    return ManualPaymentInstructions(
        method=method,
        label=account.get("region", label),
        currency=account.get("currency", settings.BASE_CURRENCY),
        details=list(account.get("details", [])),
        note=account.get("subtitle", ""),
    )
