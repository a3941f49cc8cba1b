"""Pending-payment store factory.

Provides get_pending_store() / set_pending_store() to swap implementations:
- SqlPendingPaymentStore against the configured database (default)
- InMemoryPendingPaymentStore for development and testing
"""

from payments.pending.port import PendingPaymentStore

_current_store: PendingPaymentStore | None = None


def get_pending_store() -> PendingPaymentStore:
    """Return the current pending-payment store."""
    global _current_store
    if _current_store is None:
        from payments.pending.sql_adapter import SqlPendingPaymentStore
        from shared.db import get_engine

        _current_store = SqlPendingPaymentStore(get_engine())
    return _current_store


def set_pending_store(store: PendingPaymentStore) -> None:
    """Override the active pending-payment store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_pending_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None
