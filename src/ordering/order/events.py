"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was built for a settled checkout. Carries the summary shown to the shopper."""

    __version__ = 1

    order_id = Identifier(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    item_count = Integer(required=True)
    settlement = String(required=True)
    placed_at = DateTime(required=True)
    change = Float()
    mpesa_receipt_number = String()

    @classmethod
    def for_order(cls, order) -> "OrderPlaced":
        return cls(
            order_id=str(order.id),
            total=order.total,
            payment_method=order.payment_method,
            item_count=order.item_count,
            settlement=order.settlement,
            placed_at=order.timestamp,
            change=order.change,
            mpesa_receipt_number=order.mpesa_receipt_number,
        )
