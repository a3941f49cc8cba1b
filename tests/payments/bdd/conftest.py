"""Shared BDD fixtures and step definitions for checkout payments."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from payments.channel.events import CallbackEvent
from payments.payment.reconciliation import PaymentReconciler


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def callbacks():
    """Every callback event sent and how the till answered it."""
    return {"events": [], "statuses": []}


@pytest.fixture()
def reconciler(order_store, pending_store):
    return PaymentReconciler(order_store, pending_store)


def _receive(event, channel, reconciler, callbacks):
    # Same routing as the callback endpoint: live session first, reconciliation otherwise
    status = "delivered" if channel.deliver(event) else reconciler.handle(event).status
    callbacks["events"].append(event)
    callbacks["statuses"].append(status)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the cart holds {count:d} items totalling {total:d}"))
def _cart_holds(filled_cart, count, total):
    assert filled_cart.item_count == count
    assert filled_cart.total == total


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the cashier takes {amount:d} in cash"))
def _pay_cash(orchestrator, amount, error):
    try:
        orchestrator.pay_cash(amount)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the shopper pays with M-Pesa on "{phone}"'))
def _pay_mpesa(orchestrator, phone, error):
    try:
        orchestrator.start_mpesa(phone)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('M-Pesa confirms the payment with receipt "{receipt}"'))
def _confirm(orchestrator, channel, reconciler, callbacks, success_payload, receipt):
    event = CallbackEvent.from_payload(success_payload(orchestrator.attempt.correlation_id, receipt=receipt))
    _receive(event, channel, reconciler, callbacks)


@when("the shopper cancels the payment on the phone")
def _cancel(orchestrator, channel, reconciler, callbacks, failure_payload):
    event = CallbackEvent.from_payload(failure_payload(orchestrator.attempt.correlation_id))
    _receive(event, channel, reconciler, callbacks)


@when("the same confirmation arrives again")
def _replay(channel, reconciler, callbacks):
    _receive(callbacks["events"][-1], channel, reconciler, callbacks)


@when("the till screen is closed")
def _close(orchestrator):
    orchestrator.close()


@when("the pending payment record is lost")
def _lose_pending(pending_store):
    pending_store.records.clear()


@when("the pending payment store stops answering reads")
def _pending_unreadable(pending_store):
    pending_store.configure(fail_get=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _only_order(order_store):
    [order] = order_store.orders.values()
    return order


@then(parsers.cfparse("an order is recorded with change {change:d}"))
def _order_with_change(order_store, change):
    order = _only_order(order_store)
    assert order.payment_method == "cash"
    assert order.change == change


@then("no order is recorded")
def _no_order(order_store):
    assert order_store.orders == {}


@then("exactly one order is recorded")
def _one_order(order_store):
    assert len(order_store.orders) == 1
    assert len(order_store.saves()) == 1


@then(parsers.cfparse('the sale is rejected for "{field}"'))
def _rejected(error, field):
    assert error["exc"] is not None
    assert field in error["exc"].messages


@then("the cart is empty")
def _cart_empty(filled_cart):
    assert filled_cart.is_empty


@then(parsers.cfparse("the cart still totals {total:d}"))
def _cart_total(filled_cart, total):
    assert filled_cart.total == total


@then(parsers.cfparse('the payment state is "{state}"'))
def _payment_state(orchestrator, state):
    assert orchestrator.attempt.state == state


@then("the gateway was not called")
def _gateway_idle(gateway):
    assert gateway.calls == []


@then(parsers.cfparse('the order records phone "{phone}" and receipt "{receipt}"'))
def _order_phone_and_receipt(order_store, phone, receipt):
    order = _only_order(order_store)
    assert order.mpesa_number == phone
    assert order.mpesa_receipt_number == receipt


@then(parsers.cfparse('the order settlement is "{settlement}"'))
def _order_settlement(order_store, settlement):
    assert _only_order(order_store).settlement == settlement


@then(parsers.cfparse("the order totals {total:d}"))
def _order_total(order_store, total):
    assert _only_order(order_store).total == total


@then("the pending payment record is removed")
def _pending_removed(pending_store):
    assert pending_store.records == {}


@then(parsers.cfparse('the replay is reported as "{status}"'))
def _replay_status(callbacks, status):
    assert callbacks["statuses"][-1] == status
