"""In-memory order store for development and testing.

Behaves like the ledger (idempotent save, newest first) and can be told to
fail, which is how tests drive the store-failure branches of checkout.
"""

from ordering.order.order import Order
from ordering.order.store.port import OrderStore
from shared.exceptions import StoreError


class InMemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.calls: list[dict] = []
        self.should_fail: bool = False
        self.fail_reads: bool = False
        self.failure_reason: str = "Order store unavailable"

    def configure(self, should_fail: bool = False, fail_reads: bool = False, failure_reason: str | None = None) -> None:
        """Configure failure behavior at runtime."""
        self.should_fail = should_fail
        self.fail_reads = fail_reads
        if failure_reason is not None:
            self.failure_reason = failure_reason

    def _check(self, reading: bool = False) -> None:
        if self.should_fail or (reading and self.fail_reads):
            raise StoreError(self.failure_reason)

    def save(self, order: Order) -> bool:
        self.calls.append({"method": "save", "order_id": order.id})
        self._check()
        if order.id in self.orders:
            return False
        self.orders[order.id] = order
        return True

    def fetch_all(self) -> list[Order]:
        self.calls.append({"method": "fetch_all"})
        self._check(reading=True)
        return sorted(self.orders.values(), key=lambda o: o.timestamp, reverse=True)

    def clear_all(self) -> None:
        self.calls.append({"method": "clear_all"})
        self._check()
        self.orders.clear()

    def delete(self, order_id: str) -> None:
        self.calls.append({"method": "delete", "order_id": order_id})
        self._check()
        self.orders.pop(order_id, None)

    def find_by_request_id(self, mpesa_request_id: str) -> Order | None:
        self.calls.append({"method": "find_by_request_id", "mpesa_request_id": mpesa_request_id})
        self._check(reading=True)
        return next(
            (o for o in self.orders.values() if o.mpesa_request_id == mpesa_request_id),
            None,
        )

    def saves(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "save"]
