from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from marketplace.exceptions import InvalidProofTransitionError, OrderNotFoundError
from marketplace.models import Order, PaymentProof
from marketplace.services.notifications import OrderNotifier

logger = logging.getLogger(__name__)

PROOF_ACCEPTING_STATUSES = {Order.Status.PENDING_PAYMENT, Order.Status.PROOF_REJECTED}


def get_order(reference: str) -> Order:
    try:
        return Order.objects.get(reference=reference)
    except (Order.DoesNotExist, ValidationError) as exc:
        raise OrderNotFoundError(f"Order {reference} not found") from exc


def submit_proof(
    order: Order,
    amount: Decimal,
    transaction_reference: str,
    proof_url: str = "",
    notes: str = "",
    notifier: OrderNotifier | None = None,
) -> PaymentProof:
    if not order.is_manual_payment:
        raise InvalidProofTransitionError("Proofs are only accepted for bank and USDT transfers")
    if order.status not in PROOF_ACCEPTING_STATUSES:
        raise InvalidProofTransitionError(f"Order is {order.status}; no proof is expected")

    with transaction.atomic():
        proof = PaymentProof.objects.create(
            order=order,
            amount=amount,
            transaction_reference=transaction_reference,
            proof_url=proof_url,
            notes=notes,
        )
        order.status = Order.Status.PROOF_SUBMITTED
        order.save(update_fields=["status", "updated_at"])

    logger.info("Proof %s submitted for order %s", proof.pk, order.reference)
    (notifier or OrderNotifier()).proof_submitted(order)
    return proof


def review_proof(proof: PaymentProof, approve: bool, notes: str = "") -> PaymentProof:
    """Approve or reject a pending proof and move its order along.

    The proof is re-read under a row lock, so of two concurrent reviews only
    the first one applies. Returns the reviewed proof.
    """
    with transaction.atomic():
        locked = PaymentProof.objects.select_for_update().get(pk=proof.pk)
        if locked.status != PaymentProof.Status.PENDING:
            raise InvalidProofTransitionError(f"Proof was already {locked.status}")

        locked.status = PaymentProof.Status.APPROVED if approve else PaymentProof.Status.REJECTED
        locked.review_notes = notes
        locked.reviewed_at = timezone.now()
        locked.save(update_fields=["status", "review_notes", "reviewed_at"])

        order = Order.objects.select_for_update().get(pk=locked.order_id)
        order.status = Order.Status.PAID if approve else Order.Status.PROOF_REJECTED
        order.save(update_fields=["status", "updated_at"])

    logger.info("Proof %s for order %s %s", locked.pk, order.reference, locked.status)
    return locked
