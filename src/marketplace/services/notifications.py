from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail

from marketplace.models import Donation, FosterApplication, Order
from marketplace.services.currency import format_price

logger = logging.getLogger(__name__)


class OrderNotifier:
    def order_placed(self, order: Order) -> None:
        lines = [
            f"Hi {order.customer_name},",
            "",
            f"Thank you for your order {order.reference}.",
            "",
        ]
        for item in order.items.select_related("pet"):
            kind = "Reservation deposit" if item.is_reservation else "Adoption fee"
            lines.append(f"- {item.pet.name}: {kind} {format_price(item.base_amount, order.currency)}")
            if item.shipping_method:
                lines.append(
                    f"  Shipping ({item.shipping_method}): "
                    f"{format_price(item.shipping_total, order.currency)}"
                )
            for add_on in item.add_ons:
                lines.append(f"  {add_on['name']}: {format_price(add_on['price'], order.currency)}")
            if item.remaining_balance is not None:
                lines.append(
                    f"  Remaining balance: {format_price(item.remaining_balance, order.currency)}"
                )
        lines += [
            "",
            f"Total due now: {format_price(order.total_due_now, order.currency)}",
            f"Payment method: {order.get_payment_method_display()}",
        ]
        if order.is_manual_payment:
            lines.append("Please complete your transfer and submit your proof of payment.")

        self._send(f"Your PawHaven order {order.reference}", "\n".join(lines), [order.customer_email])

    def proof_submitted(self, order: Order) -> None:
        self._notify_admins(
            f"Payment proof submitted for {order.reference}",
            f"{order.customer_name} <{order.customer_email}> submitted a payment proof "
            f"for order {order.reference} ({format_price(order.total_due_now, order.currency)}).",
        )

    def payment_confirmed(self, order: Order) -> None:
        self._send(
            f"Payment received for order {order.reference}",
            f"Hi {order.customer_name},\n\n"
            f"We received your payment of {format_price(order.total_due_now, order.currency)} "
            f"for order {order.reference}. We will be in touch about your pet's journey home.",
            [order.customer_email],
        )

    def donation_received(self, donation: Donation) -> None:
        self._notify_admins(
            f"New donation from {donation.donor_name}",
            f"{donation.donor_name} <{donation.donor_email}> pledged a "
            f"{donation.get_donation_type_display().lower()} donation of "
            f"{format_price(donation.amount, donation.currency)}. It is waiting for verification.",
        )

    def foster_application_received(self, application: FosterApplication) -> None:
        self._notify_admins(
            f"New foster application from {application.applicant_name}",
            f"{application.applicant_name} <{application.applicant_email}> applied to foster "
            f"({application.housing_type}, available {application.availability}).",
        )

    def _notify_admins(self, subject: str, body: str) -> None:
        recipients = settings.ORDER_NOTIFICATION_ADMIN_EMAILS
        if recipients:
            self._send(subject, body, recipients)

    @staticmethod
    def _send(subject: str, body: str, recipients: list[str]) -> None:
        try:
            send_mail(
                subject,
                body,
                settings.ORDER_NOTIFICATION_FROM_EMAIL,
                recipients,
                fail_silently=False,
            )
        except OSError as exc:
            # order is already committed here
            logger.error("Could not send %r to %s: %s", subject, recipients, exc)
