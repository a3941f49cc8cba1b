"""PaymentOrchestrator: drives one checkout from cart to recorded order.

Cash is synchronous: validate, compute change, write, clear the cart. M-Pesa
goes through a MobileMoneyAttempt:

    1. validate the phone locally (no gateway call on a bad number)
    2. initiate the STK push with the gateway
    3. park the order draft in the pending-payment store
    4. subscribe to callbacks for the gateway's correlation id
    5. on a success callback, recover the draft (or reconstruct it from the
       session when the pending record is gone), write the order, drop the
       pending record, clear the cart

The orchestrator owns the callback subscription. Closing the till screen
cancels the subscription but leaves the pending record, so a confirmation
that arrives afterwards is recorded by reconciliation instead.
"""

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError

from ordering.cart.cart import Cart
from ordering.order.draft import LineItem, OrderDraft
from ordering.order.events import OrderPlaced
from ordering.order.identity import ORDER_ID_PREFIX, generate_order_id
from ordering.order.order import UNKNOWN_PHONE, Order, Settlement
from ordering.order.store.port import OrderStore
from payments.channel.events import CallbackEvent
from payments.channel.port import NotificationChannel, Subscription
from payments.gateway.port import PaymentGateway
from payments.mpesa.phone import validate_phone
from payments.payment.attempt import MobileMoneyAttempt, PaymentState
from payments.payment.confirmation import record_confirmed_order, recover_draft
from payments.payment.events import PaymentFailed
from payments.pending.port import PendingPaymentStore
from shared.exceptions import GatewayError, OrderRecordingError, StoreError

logger = structlog.get_logger(__name__)

Listener = Callable[[OrderPlaced | PaymentFailed], None]

TIMEOUT_REASON = "No confirmation received from M-Pesa. Check your phone and try again."
INITIATION_ERROR_REASON = "Unable to start the M-Pesa payment. Please try again."


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PaymentOrchestrator:
    def __init__(
        self,
        cart: Cart,
        order_store: OrderStore,
        pending_store: PendingPaymentStore,
        gateway: PaymentGateway,
        channel: NotificationChannel,
        confirmation_timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
        order_id_prefix: str = ORDER_ID_PREFIX,
    ) -> None:
        self.cart = cart
        self.order_store = order_store
        self.pending_store = pending_store
        self.gateway = gateway
        self.channel = channel
        self.confirmation_timeout = confirmation_timeout
        self.clock = clock
        self.order_id_prefix = order_id_prefix

        self.attempt = MobileMoneyAttempt.start(self.clock())
        self.last_order: Order | None = None
        self._subscription: Subscription | None = None
        # (items, cash_received, order) of a cash sale whose write failed
        self._unsaved_cash: tuple[list[LineItem], float, Order] | None = None
        self._listeners: list[Listener] = []

    # -------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for OrderPlaced / PaymentFailed notices. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, notice: OrderPlaced | PaymentFailed) -> None:
        for listener in list(self._listeners):
            listener(notice)

    def _failed(self) -> PaymentFailed:
        notice = PaymentFailed.for_attempt(self.attempt)
        self._notify(notice)
        return notice

    # -------------------------------------------------------------------
    # Cash
    # -------------------------------------------------------------------
    def _assert_can_start(self) -> None:
        if self.attempt.in_progress:
            raise ValidationError({"payment": ["An M-Pesa payment is already in progress"]})
        if self.cart.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})

    def pay_cash(self, cash_received: float) -> OrderPlaced:
        """Record a cash sale. Nothing is written when the cash does not cover the total."""
        self._assert_can_start()
        if not math.isfinite(cash_received):
            raise ValidationError({"cash_received": ["Cash received must be a finite amount"]})
        total = self.cart.total
        if cash_received < total:
            raise ValidationError(
                {"cash_received": [f"Cash received ({cash_received:g}) is less than the total ({total:g})"]}
            )

        items = self.cart.snapshot()
        order_id = generate_order_id(self.order_id_prefix)
        if self._unsaved_cash is not None:
            unsaved_items, unsaved_cash, unsaved_order = self._unsaved_cash
            if unsaved_items == items and unsaved_cash == cash_received:
                # Retrying a failed write of the same sale keeps its order id
                order_id = str(unsaved_order.id)
        order = Order.paid_in_cash(order_id, items, cash_received)

        try:
            created = self.order_store.save(order)
        except StoreError as exc:
            self._unsaved_cash = (items, cash_received, order)
            logger.warning("Cash order could not be saved, cart kept for retry", order_id=order_id, error=str(exc))
            raise

        if not created:
            logger.info("Cash order was already recorded by an earlier attempt", order_id=order_id)
        self._unsaved_cash = None
        self.last_order = order
        self.cart.clear()
        logger.info("Cash order completed", order_id=order_id, total=order.total, change=order.change)

        placed = OrderPlaced.for_order(order)
        self._notify(placed)
        return placed

    def pay_exact_cash(self) -> OrderPlaced:
        """One-tap cash sale for exactly the cart total."""
        return self.pay_cash(self.cart.total)

    # -------------------------------------------------------------------
    # M-Pesa
    # -------------------------------------------------------------------
    def start_mpesa(self, raw_phone: str) -> MobileMoneyAttempt:
        """Validate the phone, send the STK push and start waiting for the callback."""
        self._assert_can_start()
        canonical_phone = validate_phone(raw_phone)

        self._cancel_subscription()
        self.attempt = MobileMoneyAttempt.start(self.clock())
        draft = OrderDraft.build(generate_order_id(self.order_id_prefix), self.cart.snapshot(), canonical_phone)
        self.attempt.initiate(canonical_phone, draft)

        try:
            result = self.gateway.initiate(draft.total, canonical_phone, draft)
        except GatewayError as exc:
            logger.warning("M-Pesa initiation failed", order_id=draft.id, error=exc.message)
            self._abandon_initiation(exc.message)
            raise
        except Exception as exc:
            logger.exception("M-Pesa initiation raised unexpectedly", order_id=draft.id, error=str(exc))
            self._abandon_initiation(INITIATION_ERROR_REASON)
            raise GatewayError(INITIATION_ERROR_REASON) from exc

        self.attempt.await_confirmation(result.correlation_id, result.checkout_request_id, now=self.clock())

        try:
            self.pending_store.put(result.correlation_id, draft, created_at=self.clock())
        except StoreError as exc:
            # A callback can still complete the order through reconstruction
            logger.warning(
                "Pending payment not stored, relying on session state",
                correlation_id=result.correlation_id,
                order_id=draft.id,
                error=str(exc),
            )

        self._subscription = self.channel.subscribe(result.correlation_id, self.handle_callback)
        logger.info(
            "Awaiting M-Pesa confirmation",
            correlation_id=result.correlation_id,
            order_id=draft.id,
            total=draft.total,
        )
        return self.attempt

    def _abandon_initiation(self, reason: str) -> None:
        self.attempt.fail(reason, now=self.clock())
        self._failed()

    def handle_callback(self, event: CallbackEvent) -> OrderPlaced | None:
        """Apply a gateway callback. Safe to call more than once with the same event."""
        if (
            self.attempt.payment_state != PaymentState.AWAITING_CONFIRMATION
            or event.correlation_id != self.attempt.correlation_id
        ):
            logger.info(
                "Ignoring callback for another attempt",
                correlation_id=event.correlation_id,
                awaited=self.attempt.correlation_id,
                state=self.attempt.state,
            )
            return None

        if not event.succeeded:
            reason = event.result_description or "M-Pesa payment failed"
            self.attempt.fail(reason, now=self.clock())
            self._cancel_subscription()
            logger.info("M-Pesa payment failed", correlation_id=event.correlation_id, result_code=event.result_code)
            self._failed()
            return None

        receipt_number = event.receipt.mpesa_receipt_number if event.receipt else None
        draft = recover_draft(self.pending_store, event.correlation_id)
        settlement = Settlement.RECONCILED_FROM_STORE
        if draft is None:
            draft = self._reconstruct_draft(event)
            settlement = Settlement.RECONSTRUCTED_FROM_SESSION

        try:
            order, _ = record_confirmed_order(
                self.order_store,
                self.pending_store,
                event.correlation_id,
                draft,
                settlement,
                receipt_number,
            )
        except OrderRecordingError as exc:
            self.attempt.fail(str(exc), requires_support=True, now=self.clock())
            self._cancel_subscription()
            self._failed()
            raise

        self.attempt.complete(str(order.id), receipt_number, now=self.clock())
        self.last_order = order
        self.cart.clear()
        self._cancel_subscription()
        logger.info("M-Pesa order completed", correlation_id=event.correlation_id, order_id=str(order.id))

        placed = OrderPlaced.for_order(order)
        self._notify(placed)
        return placed

    def _reconstruct_draft(self, event: CallbackEvent) -> OrderDraft:
        held = self.attempt.order_draft
        items = held.items if held else self.cart.snapshot()
        order_id = held.id if held else generate_order_id(self.order_id_prefix)
        phone = self.attempt.canonical_phone or (event.receipt.phone_number if event.receipt else None) or UNKNOWN_PHONE
        return OrderDraft.build(order_id, items, phone)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def expire_if_overdue(self, now: datetime | None = None) -> bool:
        """Fail an attempt that waited longer than the confirmation timeout.

        The pending record is kept, so a late confirmation is still recorded
        by reconciliation.
        """
        if self.confirmation_timeout is None or self.attempt.payment_state != PaymentState.AWAITING_CONFIRMATION:
            return False

        now = now or self.clock()
        if now - self.attempt.awaiting_since < timedelta(seconds=self.confirmation_timeout):
            return False

        self.attempt.fail(TIMEOUT_REASON, now=now)
        self._cancel_subscription()
        logger.warning(
            "M-Pesa confirmation timed out",
            correlation_id=self.attempt.correlation_id,
            timeout_seconds=self.confirmation_timeout,
        )
        self._failed()
        return True

    def close(self) -> None:
        """Stop listening for callbacks. The gateway request and pending record stay."""
        if self._subscription is not None and self._subscription.active:
            logger.info("Checkout closed while awaiting confirmation", correlation_id=self.attempt.correlation_id)
        self._cancel_subscription()

    def reset(self) -> MobileMoneyAttempt:
        """Start over from IDLE, e.g. to pick another payment method after a failure."""
        self._cancel_subscription()
        self.attempt = MobileMoneyAttempt.start(self.clock())
        return self.attempt

    def _cancel_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
