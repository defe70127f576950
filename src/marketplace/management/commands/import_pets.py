from __future__ import annotations

from pathlib import Path
from typing import Any

import polars as pl
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from marketplace.models import Pet
from marketplace.services.money import round2

REQUIRED_COLUMNS = {"name", "type", "breed", "price", "location"}
OPTIONAL_COLUMNS = {"age": "", "gender": "", "description": "", "status": ""}


class Command(BaseCommand):
    help = "Import and normalize the pet catalog from a CSV using Polars."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--csv-path",
            type=str,
            default=str(settings.PROJECT_ROOT / "pets.csv"),
            help="Path to the source pet catalog CSV",
        )
        parser.add_argument(
            "--replace",
            action="store_true",
            help="Delete pets that have never been ordered before importing",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"CSV file does not exist: {csv_path}")

        frame = self._load_and_transform(csv_path)
        records = frame.to_dicts()

        if options["replace"]:
            Pet.objects.filter(order_items__isnull=True).delete()

        existing = {
            pet.canonical_key: pet
            for pet in Pet.objects.filter(
                canonical_key__in=[row["canonical_key"] for row in records]
            )
        }

        to_create: list[Pet] = []
        to_update: list[Pet] = []

        for row in records:
            fee = round2(row["price"])
            pet = existing.get(row["canonical_key"])
            if pet is None:
                to_create.append(
                    Pet(
                        name=row["name"],
                        pet_type=row["pet_type"],
                        breed=row["breed"],
                        age=row["age"],
                        gender=row["gender"],
                        description=row["description"],
                        adoption_fee=fee,
                        status=row["status"],
                        location=row["location"],
                        canonical_key=row["canonical_key"],
                    )
                )
                continue

            pet.age = row["age"]
            pet.gender = row["gender"]
            pet.description = row["description"]
            pet.adoption_fee = fee
            pet.status = row["status"]
            to_update.append(pet)

        if to_create:
            Pet.objects.bulk_create(to_create, batch_size=1000)
        if to_update:
            Pet.objects.bulk_update(
                to_update,
                ["age", "gender", "description", "adoption_fee", "status"],
                batch_size=1000,
            )

        self.stdout.write(
            self.style.SUCCESS(
                "Imported pets: "
                + (
                    f"{len(records)} rows normalized, "
                    f"{len(to_create)} created, {len(to_update)} updated"
                )
            )
        )

    @staticmethod
    def _load_and_transform(csv_path: Path) -> pl.DataFrame:
        frame = pl.read_csv(csv_path, infer_schema_length=0)
        frame = frame.rename({column: column.strip().lower() for column in frame.columns})
        missing_columns = REQUIRED_COLUMNS.difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        defaults = [
            pl.lit(default).alias(column)
            for column, default in OPTIONAL_COLUMNS.items()
            if column not in frame.columns
        ]
        if defaults:
            frame = frame.with_columns(defaults)

        def text(column: str) -> pl.Expr:
            return pl.col(column).cast(pl.Utf8, strict=False).str.strip_chars().fill_null("")

        normalized = (
            frame.select(
                text("name").alias("name"),
                text("type").str.to_lowercase().alias("pet_type"),
                text("breed").alias("breed"),
                text("age").alias("age"),
                text("gender").str.to_lowercase().alias("gender"),
                text("description").alias("description"),
                text("location").alias("location"),
                pl.when(text("status") == "")
                .then(pl.lit(Pet.Status.AVAILABLE.value))
                .otherwise(text("status").str.to_lowercase())
                .alias("status"),
                text("price")
                .str.replace_all(r"[$,]", "")
                .cast(pl.Float64, strict=False)
                .round(2)
                .alias("price"),
            )
            .filter(
                pl.col("price").is_not_null()
                & (pl.col("price") >= 0)
                & (pl.col("name").str.len_chars() > 0)
                & (pl.col("pet_type").str.len_chars() > 0)
                & pl.col("status").is_in([choice.value for choice in Pet.Status])
            )
            .with_columns(
                pl.concat_str(
                    [
                        pl.col("name").str.to_uppercase(),
                        pl.col("pet_type").str.to_uppercase(),
                        pl.col("breed").str.to_uppercase(),
                        pl.col("location").str.to_uppercase(),
                    ],
                    separator="|",
                ).alias("canonical_key")
            )
            .sort(["canonical_key", "price"])
            .unique(subset=["canonical_key"], keep="first", maintain_order=True)
        )

        return normalized
