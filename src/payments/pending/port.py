"""Pending-payment store port.

Holds the order draft of an M-Pesa payment between STK push initiation and
the gateway callback, keyed by the gateway's correlation id. This is the
durability point that survives a dropped connection or a restarted till.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from ordering.order.draft import OrderDraft


def as_utc(moment: datetime) -> datetime:
    """Timezone-aware UTC; naive datetimes are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


@dataclass(frozen=True)
class PendingPayment:
    correlation_id: str
    draft: OrderDraft
    created_at: datetime


class PendingPaymentStore(ABC):
    """Abstract pending-payment store. Failures raise StoreError."""

    @abstractmethod
    def put(self, correlation_id: str, draft: OrderDraft, created_at: datetime | None = None) -> None:
        """Park ``draft`` under ``correlation_id`` (replacing any earlier record)."""
        ...

    @abstractmethod
    def get(self, correlation_id: str) -> OrderDraft | None:
        """The parked draft, or None when nothing is held for the id."""
        ...

    @abstractmethod
    def delete(self, correlation_id: str) -> None:
        """Remove the record. Deleting an absent id is not an error."""
        ...

    @abstractmethod
    def list_older_than(self, cutoff: datetime) -> list[PendingPayment]:
        """Records created before ``cutoff``, oldest first."""
        ...
