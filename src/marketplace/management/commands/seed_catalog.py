from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.management.base import BaseCommand

from marketplace.models import AddOn, GroundTransportConfig
from marketplace.services.transport_settings import GroundTransportSettingsProvider

ADD_ONS = (
    ("fip-protection", "FIP Protection Plan", "36-month Feline Infectious Peritonitis protection", "349"),
    ("extended-genetic", "Extended Genetic Health Guarantee", "3-year extended coverage for genetic conditions", "299"),
    ("hcm-testing", "HCM Gene Testing", "Comprehensive Hypertrophic Cardiomyopathy testing", "150"),
    ("pedigree", "Pedigree Certificate", "Official pedigree documentation", "75"),
    ("breeding-rights", "Breeding Rights", "Authorization for breeding purposes", "500"),
    ("cattery-package", "Cattery Package", "Starter kit with food, toys, and essentials", "199"),
)

DEFAULT_GROUND_TRANSPORT = {
    "is_enabled": True,
    "is_active": True,
    "base_price": Decimal("50.00"),
    "price_per_km": Decimal("0.0500"),
    "price_per_mile": Decimal("0.0805"),
    "standard_multiplier": Decimal("1.000"),
    "private_multiplier": Decimal("1.500"),
    "companion_base_fee": Decimal("20.00"),
    "companion_per_km": Decimal("0.0200"),
    "companion_max_fee": Decimal("100.00"),
    "max_ground_distance_km": 5000.0,
    "estimated_speed_kmh": 80.0,
}


class Command(BaseCommand):
    help = "Seed the add-on catalog and a default ground transport configuration."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--skip-ground-transport",
            action="store_true",
            help="Only seed add-ons",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        created = 0
        for code, name, description, price in ADD_ONS:
            _, was_created = AddOn.objects.update_or_create(
                code=code,
                defaults={"name": name, "description": description, "price": Decimal(price)},
            )
            created += int(was_created)

        self.stdout.write(
            self.style.SUCCESS(f"Add-ons seeded: {created} created, {len(ADD_ONS) - created} updated")
        )

        if options["skip_ground_transport"]:
            return
        if GroundTransportConfig.objects.filter(is_active=True).exists():
            self.stdout.write(self.style.WARNING("Active ground transport settings already exist"))
            return

        GroundTransportConfig.objects.create(**DEFAULT_GROUND_TRANSPORT)
        GroundTransportSettingsProvider.invalidate()
        self.stdout.write(self.style.SUCCESS("Created default ground transport settings"))
