"""Order aggregate: the immutable record of a completed transaction.

An Order is built once, at finalization, and never updated afterwards: the
ledger only ever creates orders or bulk-deletes history. Two payment methods
shape it differently:

    cash   carries cash_received and change (never negative)
    mpesa  carries the canonical mpesa_number and the gateway references

``Settlement`` records how an order came to be written, so a clean gateway
confirmation can be told apart from the best-effort reconstruction used when
the pending-payment record was lost.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.draft import LineItem, OrderDraft, sum_lines
from ordering.order.events import OrderPlaced

UNKNOWN_PHONE = "Unknown"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentMethod(Enum):
    CASH = "cash"
    MPESA = "mpesa"


class Settlement(Enum):
    CASH_TENDERED = "Cash_Tendered"
    RECONCILED_FROM_STORE = "Reconciled_From_Store"
    RECONSTRUCTED_FROM_SESSION = "Reconstructed_From_Session"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of an order, priced at the moment the order was built."""

    item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    items = HasMany(OrderItem)
    total = Float(required=True, min_value=0.0)
    payment_method = String(required=True, max_length=10, choices=PaymentMethod)
    timestamp = DateTime(required=True)
    settlement = String(required=True, max_length=32, choices=Settlement)
    cash_received = Float()
    change = Float()
    mpesa_number = String(max_length=20)
    mpesa_request_id = String(max_length=64)
    mpesa_receipt_number = String(max_length=64)

    @invariant.post
    def payment_fields_match_method(self):
        if self.payment_method == PaymentMethod.CASH.value:
            if self.cash_received is None or self.change is None:
                raise ValidationError({"cash_received": ["Cash orders record cash received and change"]})
            if self.change < 0 or self.cash_received < self.total:
                raise ValidationError({"cash_received": ["Cash received cannot be less than the order total"]})
            if self.mpesa_number is not None:
                raise ValidationError({"mpesa_number": ["Cash orders do not carry an M-Pesa number"]})
        else:
            if not self.mpesa_number:
                raise ValidationError({"mpesa_number": ["M-Pesa orders record the paying phone number"]})
            if self.cash_received is not None or self.change is not None:
                raise ValidationError({"cash_received": ["M-Pesa orders do not carry cash fields"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def paid_in_cash(cls, order_id: str, items: list[LineItem], cash_received: float) -> "Order":
        total = sum_lines(items)
        order = cls(
            id=order_id,
            total=total,
            payment_method=PaymentMethod.CASH.value,
            timestamp=datetime.now(UTC),
            settlement=Settlement.CASH_TENDERED.value,
            cash_received=cash_received,
            change=max(0.0, round(cash_received - total, 2)),
        )
        order._add_lines(items)
        order.raise_(OrderPlaced.for_order(order))
        return order

    @classmethod
    def from_draft(
        cls,
        draft: OrderDraft,
        settlement: Settlement,
        mpesa_request_id: str,
        mpesa_receipt_number: str | None = None,
    ) -> "Order":
        order = cls(
            id=draft.id,
            total=draft.total,
            payment_method=PaymentMethod.MPESA.value,
            timestamp=datetime.now(UTC),
            settlement=settlement.value,
            mpesa_number=draft.mpesa_number or UNKNOWN_PHONE,
            mpesa_request_id=mpesa_request_id,
            mpesa_receipt_number=mpesa_receipt_number,
        )
        order._add_lines(draft.items)
        order.raise_(OrderPlaced.for_order(order))
        return order

    def _add_lines(self, items: list[LineItem]) -> None:
        for item in items:
            self.add_items(OrderItem(item_id=item.item_id, name=item.name, price=item.price, quantity=item.quantity))

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items or [])

    @property
    def is_reconstructed(self) -> bool:
        return self.settlement == Settlement.RECONSTRUCTED_FROM_SESSION.value

    def lines(self) -> list[LineItem]:
        return [
            LineItem(item_id=str(item.item_id), name=item.name, price=item.price, quantity=item.quantity)
            for item in self.items or []
        ]
