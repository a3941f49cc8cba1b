"""Order store factory.

Provides get_order_store() / set_order_store() to swap implementations:
- SqlOrderStore against the configured database (default)
- InMemoryOrderStore for development and testing
"""

from ordering.order.store.port import OrderStore

_current_store: OrderStore | None = None


def get_order_store() -> OrderStore:
    """Return the current order store. Defaults to the SQL ledger."""
    global _current_store
    if _current_store is None:
        from ordering.order.store.sql_adapter import SqlOrderStore
        from shared.db import get_engine

        _current_store = SqlOrderStore(get_engine())
    return _current_store


def set_order_store(store: OrderStore) -> None:
    """Override the active order store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_order_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None
