import os
from pathlib import Path

import pytest

os.environ.setdefault("TILLPOINT_ENV", "test")
os.environ.setdefault("TILLPOINT_DATABASE_URL", "sqlite://")


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Initialize both domains and activate one, so that aggregates built at
    module or fixture level can generate identities.
    """
    os.environ.setdefault("PROTEAN_ENV", "test")

    from ordering.domain import ordering
    from payments.domain import payments

    ordering.init()
    payments.init()
    ordering.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset every swappable adapter after each test."""
    yield

    from catalogue.menu.repository import reset_catalogue
    from ordering.order.history import reset_order_history
    from ordering.order.store import reset_order_store
    from ordering.session import reset_session_registry
    from payments.channel import reset_channel
    from payments.gateway import reset_gateway
    from payments.pending import reset_pending_store
    from shared.config import get_settings

    reset_session_registry()
    reset_order_store()
    reset_order_history()
    reset_pending_store()
    reset_gateway()
    reset_channel()
    reset_catalogue()
    get_settings.cache_clear()


@pytest.fixture()
def order_store():
    from ordering.order.store import set_order_store
    from ordering.order.store.fake_adapter import InMemoryOrderStore

    store = InMemoryOrderStore()
    set_order_store(store)
    return store


@pytest.fixture()
def pending_store():
    from payments.pending import set_pending_store
    from payments.pending.fake_adapter import InMemoryPendingPaymentStore

    store = InMemoryPendingPaymentStore()
    set_pending_store(store)
    return store


@pytest.fixture()
def gateway():
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def channel():
    from payments.channel import set_channel
    from payments.channel.in_memory import InMemoryNotificationChannel

    in_memory = InMemoryNotificationChannel()
    set_channel(in_memory)
    return in_memory


@pytest.fixture()
def engine():
    from shared.db import build_engine, drop_db, setup_db

    engine = build_engine("sqlite://")
    setup_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()
