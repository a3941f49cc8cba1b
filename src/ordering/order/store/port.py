"""Order store port: the narrow interface to the persistent order ledger.

Orders are immutable once written, so ``save`` is an idempotent upsert keyed
by order id: saving an id that is already present leaves the ledger as it
was. Every failure surfaces as StoreError.
"""

from abc import ABC, abstractmethod

from ordering.order.order import Order


class OrderStore(ABC):
    """Abstract order ledger."""

    @abstractmethod
    def save(self, order: Order) -> bool:
        """Write ``order``. Returns False when the id was already recorded."""
        ...

    @abstractmethod
    def fetch_all(self) -> list[Order]:
        """All orders, most recent first."""
        ...

    @abstractmethod
    def clear_all(self) -> None:
        """Delete the whole history."""
        ...

    @abstractmethod
    def delete(self, order_id: str) -> None:
        """Delete one order (all of its lines)."""
        ...

    @abstractmethod
    def find_by_request_id(self, mpesa_request_id: str) -> Order | None:
        """The order recorded for an M-Pesa correlation id, if any."""
        ...
