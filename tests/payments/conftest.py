from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture

from catalogue.menu.menu_item import MenuItem
from ordering.cart.cart import Cart
from payments.payment.orchestrator import PaymentOrchestrator

SHAWARMA = MenuItem(id="l1", name="Shawarma", price=400, category="lunch")
KAHAWA = MenuItem(id="b1", name="Kahawa", price=50, category="breakfast")


@pytest.fixture(scope="session")
def payments_bed():
    from payments.domain import payments

    bed = DomainFixture(payments)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(payments_bed):
    with payments_bed.domain_context():
        yield


class FakeClock:
    """Manually advanced clock for timeout tests."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def filled_cart():
    cart = Cart.create()
    cart.add_item(SHAWARMA)
    cart.add_item(KAHAWA)
    cart.add_item(KAHAWA)
    return cart


@pytest.fixture()
def make_orchestrator(order_store, pending_store, gateway, channel, clock, filled_cart):
    def _make(cart=None, confirmation_timeout=None):
        return PaymentOrchestrator(
            cart=cart if cart is not None else filled_cart,
            order_store=order_store,
            pending_store=pending_store,
            gateway=gateway,
            channel=channel,
            confirmation_timeout=confirmation_timeout,
            clock=clock,
        )

    return _make


@pytest.fixture()
def orchestrator(make_orchestrator):
    return make_orchestrator()


def _success_payload(correlation_id, receipt="QK7AB12CD3", amount=500, phone=254712345678):
    return {
        "MerchantRequestID": correlation_id,
        "CheckoutRequestID": "ws_CO_010320260900",
        "ResultCode": 0,
        "ResultDesc": "The service request is processed successfully.",
        "CallbackMetadata": {
            "Item": [
                {"Name": "Amount", "Value": amount},
                {"Name": "MpesaReceiptNumber", "Value": receipt},
                {"Name": "TransactionDate", "Value": 20260301090512},
                {"Name": "PhoneNumber", "Value": phone},
            ]
        },
    }


def _failure_payload(correlation_id, code=1032, description="Request cancelled by user"):
    return {
        "MerchantRequestID": correlation_id,
        "CheckoutRequestID": "ws_CO_010320260900",
        "ResultCode": code,
        "ResultDesc": description,
    }


@pytest.fixture()
def success_payload():
    return _success_payload


@pytest.fixture()
def failure_payload():
    return _failure_payload


@pytest.fixture()
def subscribers(channel):
    """Live subscriptions the in-memory channel holds for a correlation id."""

    def _count(correlation_id):
        return len(channel._subscriptions.get(correlation_id, []))

    return _count
