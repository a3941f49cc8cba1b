"""Cart aggregate: the shopper's in-progress, unpersisted selection.

The cart lives only as long as the checkout session that owns it. Lines are
keyed by catalogue item id, so adding an item twice bumps its quantity
instead of creating a second line, and a line whose quantity drops to zero is
removed rather than kept at zero. Totals are derived on every read.
"""

from datetime import UTC, datetime
from typing import Protocol

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.draft import LineItem


class Purchasable(Protocol):
    """Anything the till can put in a cart (menu items, typically)."""

    id: str
    name: str
    price: float


@ordering.entity(part_of="Cart")
class CartLine:
    item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@ordering.aggregate
class Cart:
    items = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls) -> "Cart":
        now = datetime.now(UTC)
        return cls(created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def line_for(self, item_id: str) -> CartLine | None:
        return next((line for line in self.items or [] if str(line.item_id) == str(item_id)), None)

    def add_item(self, item: Purchasable) -> CartLine:
        """Add one unit of ``item``; an existing line accumulates quantity."""
        line = self.line_for(item.id)
        if line is not None:
            line.quantity += 1
        else:
            line = CartLine(item_id=str(item.id), name=item.name, unit_price=item.price, quantity=1)
            self.add_items(line)
        self.updated_at = datetime.now(UTC)
        return line

    def update_quantity(self, item_id: str, new_quantity: int) -> None:
        """Set a line's quantity. Zero or less removes the line; unknown ids are ignored."""
        line = self.line_for(item_id)
        if line is None:
            return
        if new_quantity <= 0:
            self.remove_items(line)
        else:
            line.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

    def clear(self) -> None:
        for line in list(self.items or []):
            self.remove_items(line)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total(self) -> float:
        return round(sum(line.line_total for line in self.items or []), 2)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items or [])

    @property
    def is_empty(self) -> bool:
        return not self.items

    def snapshot(self) -> list[LineItem]:
        """Freeze the current lines into priced line items."""
        return [
            LineItem(item_id=str(line.item_id), name=line.name, price=line.unit_price, quantity=line.quantity)
            for line in self.items or []
        ]
