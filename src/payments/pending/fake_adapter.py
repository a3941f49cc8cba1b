"""In-memory pending-payment store for development and testing."""

from datetime import UTC, datetime

from ordering.order.draft import OrderDraft
from payments.pending.port import PendingPayment, PendingPaymentStore, as_utc
from shared.exceptions import StoreError


class InMemoryPendingPaymentStore(PendingPaymentStore):
    def __init__(self) -> None:
        self.records: dict[str, PendingPayment] = {}
        self.calls: list[dict] = []
        self.fail_put: bool = False
        self.fail_get: bool = False
        self.fail_delete: bool = False

    def configure(self, fail_put: bool = False, fail_get: bool = False, fail_delete: bool = False) -> None:
        """Configure failure behavior at runtime."""
        self.fail_put = fail_put
        self.fail_get = fail_get
        self.fail_delete = fail_delete

    def put(self, correlation_id: str, draft: OrderDraft, created_at: datetime | None = None) -> None:
        self.calls.append({"method": "put", "correlation_id": correlation_id})
        if self.fail_put:
            raise StoreError("Pending payment store unavailable")
        self.records[correlation_id] = PendingPayment(
            correlation_id=correlation_id,
            draft=draft,
            created_at=as_utc(created_at or datetime.now(UTC)),
        )

    def get(self, correlation_id: str) -> OrderDraft | None:
        self.calls.append({"method": "get", "correlation_id": correlation_id})
        if self.fail_get:
            raise StoreError("Pending payment store unavailable")
        record = self.records.get(correlation_id)
        return record.draft if record else None

    def delete(self, correlation_id: str) -> None:
        self.calls.append({"method": "delete", "correlation_id": correlation_id})
        if self.fail_delete:
            raise StoreError("Pending payment store unavailable")
        self.records.pop(correlation_id, None)

    def list_older_than(self, cutoff: datetime) -> list[PendingPayment]:
        self.calls.append({"method": "list_older_than"})
        cutoff = as_utc(cutoff)
        return sorted(
            (record for record in self.records.values() if record.created_at < cutoff),
            key=lambda record: record.created_at,
        )
