"""Order history as shown on the till's receipts screen.

Reads go to the order store; the last successful read is kept so that a
store outage degrades to a stale list instead of an empty screen. Orders
placed at this till are recorded into that view as they complete, so the
stale list still shows them.
"""

import structlog

from ordering.order.order import Order
from ordering.order.store import get_order_store
from ordering.order.store.port import OrderStore
from shared.exceptions import StoreError

logger = structlog.get_logger(__name__)


class OrderHistory:
    def __init__(self, store: OrderStore) -> None:
        self.store = store
        self._cached: list[Order] = []
        self.stale = False

    def load(self) -> list[Order]:
        """All orders, newest first. Falls back to the cached view on StoreError."""
        try:
            orders = self.store.fetch_all()
        except StoreError as exc:
            logger.warning("Order store unavailable, serving cached history", error=str(exc), cached=len(self._cached))
            self.stale = True
            return list(self._cached)

        self._cached = list(orders)
        self.stale = False
        return list(orders)

    def record(self, order: Order) -> None:
        """Put a freshly written order at the top of the cached view."""
        self._cached = [order] + [o for o in self._cached if o.id != order.id]

    def clear(self) -> None:
        self.store.clear_all()
        self._cached = []
        logger.info("Order history cleared")

    def delete(self, order_id: str) -> None:
        self.store.delete(order_id)
        self._cached = [o for o in self._cached if o.id != order_id]


_history: OrderHistory | None = None


def get_order_history() -> OrderHistory:
    """The history over the current order store, rebuilt when the store is swapped."""
    global _history
    store = get_order_store()
    if _history is None or _history.store is not store:
        _history = OrderHistory(store)
    return _history


def reset_order_history() -> None:
    global _history
    _history = None
