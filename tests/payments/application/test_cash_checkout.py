"""Tests for the cash checkout path of PaymentOrchestrator."""

import pytest
from protean.exceptions import ValidationError

from ordering.cart.cart import Cart
from ordering.order.events import OrderPlaced
from shared.exceptions import StoreError


class TestCashPayment:
    def test_exact_cash_records_order_with_zero_change(self, orchestrator, order_store, filled_cart):
        event = orchestrator.pay_cash(500)
        assert isinstance(event, OrderPlaced)
        assert event.change == 0
        [order] = order_store.orders.values()
        assert order.total == 500
        assert order.cash_received == 500
        assert order.payment_method == "cash"
        assert filled_cart.is_empty

    def test_overpayment_records_change(self, orchestrator, order_store):
        event = orchestrator.pay_cash(700)
        assert event.change == 200
        assert order_store.orders[event.order_id].change == 200

    def test_underpayment_rejected_before_any_write(self, orchestrator, order_store, filled_cart):
        with pytest.raises(ValidationError) as exc:
            orchestrator.pay_cash(400)
        assert "cash_received" in exc.value.messages
        assert order_store.saves() == []
        assert filled_cart.total == 500

    def test_empty_cart_rejected(self, make_orchestrator, order_store):
        orchestrator = make_orchestrator(cart=Cart.create())
        with pytest.raises(ValidationError):
            orchestrator.pay_cash(100)
        assert order_store.saves() == []

    def test_exact_cash_shortcut(self, orchestrator, order_store):
        event = orchestrator.pay_exact_cash()
        assert event.total == 500
        assert event.change == 0

    def test_listeners_receive_order_placed(self, orchestrator):
        notices = []
        orchestrator.subscribe(notices.append)
        orchestrator.pay_cash(1000)
        assert len(notices) == 1
        assert isinstance(notices[0], OrderPlaced)

    def test_unsubscribed_listener_is_not_called(self, orchestrator):
        notices = []
        unsubscribe = orchestrator.subscribe(notices.append)
        unsubscribe()
        orchestrator.pay_cash(500)
        assert notices == []


class TestCashStoreFailure:
    def test_failure_surfaces_and_keeps_cart(self, orchestrator, order_store, filled_cart):
        order_store.configure(should_fail=True)
        with pytest.raises(StoreError):
            orchestrator.pay_cash(500)
        assert filled_cart.total == 500
        assert filled_cart.item_count == 3
        assert order_store.orders == {}

    def test_retry_writes_same_order_id(self, orchestrator, order_store):
        order_store.configure(should_fail=True)
        with pytest.raises(StoreError):
            orchestrator.pay_cash(500)
        failed_id = order_store.saves()[0]["order_id"]

        order_store.configure(should_fail=False)
        event = orchestrator.pay_cash(500)

        assert event.order_id == failed_id
        assert list(order_store.orders) == [failed_id]

    def test_changed_cart_gets_new_order_id(self, orchestrator, order_store, filled_cart):
        order_store.configure(should_fail=True)
        with pytest.raises(StoreError):
            orchestrator.pay_cash(500)
        failed_id = order_store.saves()[0]["order_id"]

        order_store.configure(should_fail=False)
        filled_cart.update_quantity("b1", 1)
        event = orchestrator.pay_cash(500)

        assert event.order_id != failed_id

    def test_retry_with_different_cash_gets_new_order_id(self, orchestrator, order_store):
        order_store.configure(should_fail=True)
        with pytest.raises(StoreError):
            orchestrator.pay_cash(500)
        failed_id = order_store.saves()[0]["order_id"]

        order_store.configure(should_fail=False)
        event = orchestrator.pay_cash(1000)

        assert event.order_id != failed_id
        assert order_store.orders[event.order_id].cash_received == 1000

    def test_order_already_recorded_still_completes(self, orchestrator, order_store, filled_cart):
        order_store.configure(should_fail=True)
        with pytest.raises(StoreError):
            orchestrator.pay_cash(500)
        failed_id = order_store.saves()[0]["order_id"]

        # The first write landed after all; the store now reports a duplicate
        order_store.configure(should_fail=False)
        order_store.orders[failed_id] = orchestrator._unsaved_cash[2]
        event = orchestrator.pay_cash(500)

        assert event.order_id == failed_id
        assert filled_cart.is_empty


class TestCashAmounts:
    @pytest.mark.parametrize("amount", [float("inf"), float("nan")])
    def test_non_finite_cash_is_rejected(self, orchestrator, order_store, amount):
        with pytest.raises(ValidationError) as exc:
            orchestrator.pay_cash(amount)
        assert "cash_received" in exc.value.messages
        assert order_store.saves() == []

    def test_cash_blocked_while_mpesa_in_progress(self, orchestrator, order_store):
        orchestrator.start_mpesa("0712345678")
        with pytest.raises(ValidationError) as exc:
            orchestrator.pay_cash(500)
        assert "payment" in exc.value.messages
