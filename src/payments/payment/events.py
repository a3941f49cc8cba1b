"""Domain events for the MobileMoneyAttempt aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from payments.domain import payments


@payments.event(part_of="MobileMoneyAttempt")
class MpesaPaymentInitiated:
    """An STK push is about to be sent for an order draft."""

    __version__ = 1

    attempt_id = Identifier(required=True)
    order_id = Identifier(required=True)
    phone = String(required=True)
    amount = Float(required=True)


@payments.event(part_of="MobileMoneyAttempt")
class ConfirmationAwaited:
    """The gateway accepted the STK push; the shopper is being prompted."""

    __version__ = 1

    attempt_id = Identifier(required=True)
    correlation_id = String(required=True)
    checkout_request_id = String()
    awaiting_since = DateTime(required=True)


@payments.event(part_of="MobileMoneyAttempt")
class MpesaPaymentConfirmed:
    """The gateway confirmed payment and the order was recorded."""

    __version__ = 1

    attempt_id = Identifier(required=True)
    correlation_id = String(required=True)
    order_id = Identifier(required=True)
    mpesa_receipt_number = String()
    confirmed_at = DateTime(required=True)


@payments.event(part_of="MobileMoneyAttempt")
class PaymentFailed:
    """A payment attempt ended without an order."""

    __version__ = 1

    attempt_id = Identifier(required=True)
    reason = Text(required=True)
    failed_at = DateTime(required=True)
    correlation_id = String()
    requires_support = Boolean(default=False)

    @classmethod
    def for_attempt(cls, attempt) -> "PaymentFailed":
        return cls(
            attempt_id=str(attempt.id),
            reason=attempt.failure_reason,
            failed_at=attempt.finished_at,
            correlation_id=attempt.correlation_id,
            requires_support=bool(attempt.requires_support),
        )
