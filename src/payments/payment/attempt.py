"""MobileMoneyAttempt aggregate: the state machine behind one STK push.

State Machine:
    IDLE → INITIATED → AWAITING_CONFIRMATION → COMPLETED
    INITIATED → FAILED                (gateway refused or errored)
    AWAITING_CONFIRMATION → FAILED    (failure callback, timeout, or order write failed)

COMPLETED and FAILED are terminal for an attempt; paying again starts a new
attempt at IDLE. Cash payments never create an attempt.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text, ValueObject

from ordering.order.draft import OrderDraft
from payments.domain import payments
from payments.payment.events import (
    ConfirmationAwaited,
    MpesaPaymentConfirmed,
    MpesaPaymentInitiated,
    PaymentFailed,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentState(Enum):
    IDLE = "idle"
    INITIATED = "initiated"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    PaymentState.IDLE: {PaymentState.INITIATED},
    PaymentState.INITIATED: {PaymentState.AWAITING_CONFIRMATION, PaymentState.FAILED},
    PaymentState.AWAITING_CONFIRMATION: {PaymentState.COMPLETED, PaymentState.FAILED},
    PaymentState.COMPLETED: set(),  # Terminal
    PaymentState.FAILED: set(),  # Terminal
}

IN_PROGRESS = {PaymentState.INITIATED, PaymentState.AWAITING_CONFIRMATION}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@payments.value_object(part_of="MobileMoneyAttempt")
class GatewayReference:
    """The gateway's handles on an accepted STK push."""

    correlation_id = String(required=True, max_length=64)
    checkout_request_id = String(max_length=64)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@payments.aggregate
class MobileMoneyAttempt:
    state = String(max_length=32, choices=PaymentState, default=PaymentState.IDLE.value)
    canonical_phone = String(max_length=20)
    order_draft_json = Text()  # JSON: the OrderDraft parked for this attempt
    reference = ValueObject(GatewayReference)
    order_id = Identifier()
    mpesa_receipt_number = String(max_length=64)
    failure_reason = Text()
    requires_support = Boolean(default=False)
    started_at = DateTime()
    awaiting_since = DateTime()
    finished_at = DateTime()

    @classmethod
    def start(cls, now: datetime | None = None) -> "MobileMoneyAttempt":
        return cls(state=PaymentState.IDLE.value, started_at=now or datetime.now(UTC))

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    @property
    def payment_state(self) -> PaymentState:
        return PaymentState(self.state)

    def _assert_can_transition(self, target: PaymentState) -> None:
        current = self.payment_state
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"state": [f"Cannot transition from {current.value} to {target.value}"]})

    @property
    def in_progress(self) -> bool:
        return self.payment_state in IN_PROGRESS

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.payment_state]

    @property
    def correlation_id(self) -> str | None:
        return self.reference.correlation_id if self.reference else None

    @property
    def checkout_request_id(self) -> str | None:
        return self.reference.checkout_request_id if self.reference else None

    @property
    def order_draft(self) -> OrderDraft | None:
        return OrderDraft.model_validate_json(self.order_draft_json) if self.order_draft_json else None

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def initiate(self, canonical_phone: str, order_draft: OrderDraft) -> None:
        self._assert_can_transition(PaymentState.INITIATED)
        self.state = PaymentState.INITIATED.value
        self.canonical_phone = canonical_phone
        self.order_draft_json = order_draft.model_dump_json()

        self.raise_(
            MpesaPaymentInitiated(
                attempt_id=str(self.id),
                order_id=order_draft.id,
                phone=canonical_phone,
                amount=order_draft.total,
            )
        )

    def await_confirmation(
        self, correlation_id: str, checkout_request_id: str | None = None, now: datetime | None = None
    ) -> None:
        self._assert_can_transition(PaymentState.AWAITING_CONFIRMATION)
        self.state = PaymentState.AWAITING_CONFIRMATION.value
        self.reference = GatewayReference(correlation_id=correlation_id, checkout_request_id=checkout_request_id)
        self.awaiting_since = now or datetime.now(UTC)

        self.raise_(
            ConfirmationAwaited(
                attempt_id=str(self.id),
                correlation_id=correlation_id,
                checkout_request_id=checkout_request_id,
                awaiting_since=self.awaiting_since,
            )
        )

    def complete(self, order_id: str, mpesa_receipt_number: str | None = None, now: datetime | None = None) -> None:
        self._assert_can_transition(PaymentState.COMPLETED)
        self.state = PaymentState.COMPLETED.value
        self.order_id = order_id
        self.mpesa_receipt_number = mpesa_receipt_number
        self.finished_at = now or datetime.now(UTC)

        self.raise_(
            MpesaPaymentConfirmed(
                attempt_id=str(self.id),
                correlation_id=self.correlation_id,
                order_id=order_id,
                mpesa_receipt_number=mpesa_receipt_number,
                confirmed_at=self.finished_at,
            )
        )

    def fail(self, reason: str, requires_support: bool = False, now: datetime | None = None) -> None:
        self._assert_can_transition(PaymentState.FAILED)
        self.state = PaymentState.FAILED.value
        self.failure_reason = reason
        self.requires_support = requires_support
        self.finished_at = now or datetime.now(UTC)

        self.raise_(PaymentFailed.for_attempt(self))
