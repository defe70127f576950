from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand

from marketplace.models import Pet
from marketplace.services.reference_data import match_location_text


class Command(BaseCommand):
    help = "Resolve free-text pet locations into structured country/region origins."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--limit", type=int, default=500, help="Max pets to resolve in one run"
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Re-resolve all pets, including ones that already have an origin",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        limit = max(1, options["limit"])
        force = bool(options["force"])

        queryset = Pet.objects.exclude(location="")
        if not force:
            queryset = queryset.filter(origin_region_id="", is_location_ambiguous=False)

        pets = list(queryset.order_by("id")[:limit])
        if not pets:
            self.stdout.write(self.style.WARNING("No pet locations to resolve"))
            return

        resolved = 0
        ambiguous = 0
        unmatched = 0
        for pet in pets:
            matches = match_location_text(pet.location)
            if len(matches) == 1:
                country, region = matches[0]
                pet.origin_country_id = country.id
                pet.origin_region_id = region.id
                pet.is_location_ambiguous = False
                resolved += 1
            else:
                # no origin is guessed; staff pick one in the admin
                pet.origin_country_id = ""
                pet.origin_region_id = ""
                pet.is_location_ambiguous = True
                if matches:
                    ambiguous += 1
                    self.stdout.write(
                        f"{pet.name}: '{pet.location}' matches "
                        + ", ".join(f"{region.name} ({country.id})" for country, region in matches)
                    )
                else:
                    unmatched += 1

            pet.save(
                update_fields=[
                    "origin_country_id",
                    "origin_region_id",
                    "is_location_ambiguous",
                    "updated_at",
                ]
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Location run complete: {resolved} resolved, {ambiguous} ambiguous, "
                f"{unmatched} unmatched (limit={limit})"
            )
        )
