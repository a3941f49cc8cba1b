"""OrderDraft: an M-Pesa order parked while the gateway confirms payment.

The draft is what the pending-payment store holds between STK push
initiation and the callback, so it is a plain serializable payload rather
than an aggregate. ``Order.from_draft`` turns it into the recorded order.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

MPESA = "mpesa"


class LineItem(BaseModel):
    """A cart line priced at the moment the cart was snapshotted."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


def sum_lines(items) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


class OrderDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: list[LineItem]
    total: float = Field(ge=0)
    payment_method: str = MPESA
    mpesa_number: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def build(cls, order_id: str, items: list[LineItem], mpesa_number: str) -> "OrderDraft":
        return cls(id=order_id, items=items, total=sum_lines(items), mpesa_number=mpesa_number)
