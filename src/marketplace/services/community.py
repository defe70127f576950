from __future__ import annotations

import logging

from django.conf import settings

from marketplace.models import Donation, FosterApplication
from marketplace.schemas import DonationRequest, FosterApplicationRequest
from marketplace.services.money import round2
from marketplace.services.notifications import OrderNotifier

logger = logging.getLogger(__name__)


def record_donation(request: DonationRequest, notifier: OrderNotifier | None = None) -> Donation:
    """Donations are pledged here and verified by staff against the transfer."""
    donation = Donation.objects.create(
        donor_name=request.donor_name,
        donor_email=request.donor_email,
        donor_phone=request.donor_phone or "",
        amount=round2(request.amount),
        currency=settings.BASE_CURRENCY,
        donation_type=request.donation_type,
        message=request.message or "",
        proof_url=str(request.proof_url) if request.proof_url else "",
    )
    logger.info("Donation %s recorded: %s %s", donation.pk, donation.amount, donation.currency)
    (notifier or OrderNotifier()).donation_received(donation)
    return donation


def submit_foster_application(
    request: FosterApplicationRequest, notifier: OrderNotifier | None = None
) -> FosterApplication:
    application = FosterApplication.objects.create(
        applicant_name=request.applicant_name,
        applicant_email=request.applicant_email,
        applicant_phone=request.applicant_phone,
        address=request.address,
        housing_type=request.housing_type,
        has_yard=request.has_yard,
        has_other_pets=request.has_other_pets,
        other_pets_details=request.other_pets_details or "",
        has_children=request.has_children,
        children_ages=request.children_ages or "",
        experience=request.experience or "",
        availability=request.availability,
        preferred_pet_types=list(dict.fromkeys(request.preferred_pet_types)),
    )
    logger.info("Foster application %s submitted", application.pk)
    (notifier or OrderNotifier()).foster_application_received(application)
    return application
