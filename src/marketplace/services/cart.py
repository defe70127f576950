from __future__ import annotations

from dataclasses import replace
from typing import Any

from marketplace.exceptions import CartItemNotFoundError
from marketplace.services.money import round2
from marketplace.services.types import AddOn, LineItem, ShippingSelection

SESSION_KEY = "cart"


class Cart:
    """Shopping cart kept in the user's session, one line per pet."""

    def __init__(self, session: Any) -> None:
        self.session = session

    @property
    def items(self) -> list[LineItem]:
        return [self._decode(raw) for raw in self.session.get(SESSION_KEY, [])]

    def __len__(self) -> int:
        return len(self.session.get(SESSION_KEY, []))

    def add(self, item: LineItem) -> None:
        items = self.items
        for index, existing in enumerate(items):
            if existing.pet_id == item.pet_id:
                items[index] = item
                break
        else:
            items.append(item)
        self._save(items)

    def remove(self, pet_id: str) -> None:
        items = self.items
        remaining = [item for item in items if item.pet_id != pet_id]
        if len(remaining) == len(items):
            raise CartItemNotFoundError(f"Pet {pet_id} is not in the cart")
        self._save(remaining)

    def update_add_ons(self, pet_id: str, add_ons: list[AddOn]) -> LineItem:
        return self._update(pet_id, add_ons=tuple(add_ons))

    def update_shipping(self, pet_id: str, shipping: ShippingSelection | None) -> LineItem:
        return self._update(pet_id, shipping=shipping)

    def clear(self) -> None:
        self._save([])

    def _update(self, pet_id: str, **changes: Any) -> LineItem:
        items = self.items
        for index, item in enumerate(items):
            if item.pet_id == pet_id:
                updated = replace(item, **changes)
                items[index] = updated
                self._save(items)
                return updated
        raise CartItemNotFoundError(f"Pet {pet_id} is not in the cart")

    def _save(self, items: list[LineItem]) -> None:
        self.session[SESSION_KEY] = [self._encode(item) for item in items]
        self.session.modified = True

    @staticmethod
    def _encode(item: LineItem) -> dict[str, Any]:
        return {
            "pet_id": item.pet_id,
            "pet_name": item.pet_name,
            "base_price": str(item.base_price),
            "add_ons": [
                {"id": add_on.id, "name": add_on.name, "price": str(add_on.price)}
                for add_on in item.add_ons
            ],
            "shipping": (
                {
                    "id": item.shipping.id,
                    "name": item.shipping.name,
                    "price": str(item.shipping.price),
                    "quote": item.shipping.quote,
                }
                if item.shipping
                else None
            ),
            "is_reservation": item.is_reservation,
        }

    @staticmethod
    def _decode(raw: dict[str, Any]) -> LineItem:
        shipping = raw.get("shipping")
        return LineItem(
            pet_id=raw["pet_id"],
            pet_name=raw["pet_name"],
            base_price=round2(raw["base_price"]),
            add_ons=tuple(
                AddOn(id=add_on["id"], name=add_on["name"], price=round2(add_on["price"]))
                for add_on in raw.get("add_ons", [])
            ),
            shipping=(
                ShippingSelection(
                    id=shipping["id"],
                    name=shipping["name"],
                    price=round2(shipping["price"]),
                    quote=shipping.get("quote"),
                )
                if shipping
                else None
            ),
            is_reservation=bool(raw.get("is_reservation", False)),
        )
