"""Tests for the M-Pesa checkout path of PaymentOrchestrator."""

import pytest
from protean.exceptions import ValidationError

from ordering.order.events import OrderPlaced
from payments.channel.events import CallbackEvent
from payments.payment.attempt import PaymentState
from payments.payment.events import PaymentFailed
from shared.exceptions import GatewayError


def _start(orchestrator, phone="0712345678"):
    return orchestrator.start_mpesa(phone)


class TestInitiation:
    def test_valid_phone_reaches_awaiting_confirmation(self, orchestrator, gateway):
        attempt = _start(orchestrator)
        assert attempt.payment_state == PaymentState.AWAITING_CONFIRMATION
        assert attempt.canonical_phone == "254712345678"
        assert attempt.correlation_id == gateway.calls[0]["correlation_id"]

    def test_gateway_receives_amount_and_canonical_phone(self, orchestrator, gateway):
        _start(orchestrator, "+254 712 345 678")
        call = gateway.calls[0]
        assert call["amount"] == 500
        assert call["phone"] == "254712345678"

    def test_pending_record_holds_the_draft(self, orchestrator, pending_store):
        attempt = _start(orchestrator)
        draft = pending_store.get(attempt.correlation_id)
        assert draft.id == attempt.order_draft.id
        assert draft.total == 500
        assert draft.mpesa_number == "254712345678"

    def test_subscribes_for_the_correlation_id(self, orchestrator, channel, subscribers):
        attempt = _start(orchestrator)
        assert subscribers(attempt.correlation_id) == 1

    def test_cart_is_not_cleared_while_waiting(self, orchestrator, filled_cart):
        _start(orchestrator)
        assert filled_cart.total == 500

    @pytest.mark.parametrize("phone", ["0712", "123456789012", "25471234567"])
    def test_invalid_phone_makes_no_gateway_call(self, orchestrator, gateway, phone):
        with pytest.raises(ValidationError):
            _start(orchestrator, phone)
        assert gateway.calls == []
        assert orchestrator.attempt.payment_state == PaymentState.IDLE

    def test_gateway_failure_fails_attempt(self, orchestrator, gateway, pending_store):
        gateway.configure(should_succeed=False, failure_reason="Service unavailable")
        notices = []
        orchestrator.subscribe(notices.append)

        with pytest.raises(GatewayError) as exc:
            _start(orchestrator)

        assert exc.value.message == "Service unavailable"
        assert orchestrator.attempt.payment_state == PaymentState.FAILED
        assert orchestrator.attempt.failure_reason == "Service unavailable"
        assert pending_store.records == {}
        assert isinstance(notices[0], PaymentFailed)

    def test_unexpected_gateway_error_fails_attempt(self, orchestrator, gateway, order_store, filled_cart):
        def broken_initiate(amount, phone, order_draft):
            raise RuntimeError("connection pool exhausted")

        gateway.initiate = broken_initiate
        notices = []
        orchestrator.subscribe(notices.append)

        with pytest.raises(GatewayError) as exc:
            _start(orchestrator)

        assert isinstance(exc.value.__cause__, RuntimeError)
        assert orchestrator.attempt.payment_state == PaymentState.FAILED
        assert orchestrator.attempt.in_progress is False
        assert isinstance(notices[-1], PaymentFailed)

        event = orchestrator.pay_cash(500)
        assert order_store.orders[event.order_id].payment_method == "cash"
        assert filled_cart.is_empty

    def test_retry_after_gateway_failure(self, orchestrator, gateway):
        gateway.configure(should_succeed=False)
        with pytest.raises(GatewayError):
            _start(orchestrator)
        gateway.configure(should_succeed=True)
        assert _start(orchestrator).payment_state == PaymentState.AWAITING_CONFIRMATION

    def test_second_start_while_waiting_is_rejected(self, orchestrator, gateway):
        _start(orchestrator)
        with pytest.raises(ValidationError):
            _start(orchestrator)
        assert len(gateway.calls) == 1

    def test_cash_while_waiting_is_rejected(self, orchestrator, order_store):
        _start(orchestrator)
        with pytest.raises(ValidationError):
            orchestrator.pay_cash(500)
        assert order_store.saves() == []

    def test_pending_put_failure_still_waits(self, orchestrator, pending_store, channel, subscribers):
        pending_store.configure(fail_put=True)
        attempt = _start(orchestrator)
        assert attempt.payment_state == PaymentState.AWAITING_CONFIRMATION
        assert subscribers(attempt.correlation_id) == 1


class TestConfirmation:
    def test_success_records_one_order_and_drops_pending(
        self, orchestrator, channel, order_store, pending_store, filled_cart, success_payload
    ):
        attempt = _start(orchestrator)
        channel.deliver(CallbackEvent.from_payload(success_payload(attempt.correlation_id)))

        [order] = order_store.orders.values()
        assert order.payment_method == "mpesa"
        assert order.mpesa_number == "254712345678"
        assert order.mpesa_request_id == attempt.correlation_id
        assert order.mpesa_receipt_number == "QK7AB12CD3"
        assert order.settlement == "Reconciled_From_Store"
        assert order.id == attempt.order_draft.id
        assert pending_store.get(attempt.correlation_id) is None
        assert filled_cart.is_empty
        assert orchestrator.attempt.payment_state == PaymentState.COMPLETED

    def test_success_notifies_listeners(self, orchestrator, channel, success_payload):
        notices = []
        orchestrator.subscribe(notices.append)
        attempt = _start(orchestrator)
        channel.deliver(CallbackEvent.from_payload(success_payload(attempt.correlation_id)))
        assert isinstance(notices[-1], OrderPlaced)
        assert notices[-1].mpesa_receipt_number == "QK7AB12CD3"

    def test_subscription_cancelled_after_success(self, orchestrator, channel, subscribers, success_payload):
        attempt = _start(orchestrator)
        channel.deliver(CallbackEvent.from_payload(success_payload(attempt.correlation_id)))
        assert subscribers(attempt.correlation_id) == 0

    def test_pending_delete_failure_is_not_surfaced(
        self, orchestrator, channel, order_store, pending_store, success_payload
    ):
        attempt = _start(orchestrator)
        pending_store.configure(fail_delete=True)
        channel.deliver(CallbackEvent.from_payload(success_payload(attempt.correlation_id)))
        assert len(order_store.orders) == 1
        assert orchestrator.attempt.payment_state == PaymentState.COMPLETED

    def test_failure_callback_keeps_pending_record(
        self, orchestrator, channel, order_store, pending_store, filled_cart, failure_payload
    ):
        notices = []
        orchestrator.subscribe(notices.append)
        attempt = _start(orchestrator)
        channel.deliver(CallbackEvent.from_payload(failure_payload(attempt.correlation_id)))

        assert orchestrator.attempt.payment_state == PaymentState.FAILED
        assert orchestrator.attempt.failure_reason == "Request cancelled by user"
        assert pending_store.get(attempt.correlation_id) is not None
        assert order_store.orders == {}
        assert filled_cart.total == 500
        assert notices[-1].reason == "Request cancelled by user"

    def test_cash_allowed_after_failed_mpesa(self, orchestrator, channel, order_store, failure_payload):
        attempt = _start(orchestrator)
        channel.deliver(CallbackEvent.from_payload(failure_payload(attempt.correlation_id)))
        event = orchestrator.pay_cash(500)
        assert order_store.orders[event.order_id].payment_method == "cash"

    def test_unrelated_correlation_id_is_ignored(self, orchestrator, order_store, success_payload):
        _start(orchestrator)
        result = orchestrator.handle_callback(CallbackEvent.from_payload(success_payload("someone-else")))
        assert result is None
        assert order_store.orders == {}
        assert orchestrator.attempt.payment_state == PaymentState.AWAITING_CONFIRMATION
