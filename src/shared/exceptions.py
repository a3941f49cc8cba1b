"""Collaborator failures shared by all TillPoint contexts.

Input and lookup errors are protean's ``ValidationError`` and
``ObjectNotFoundError``; they are local and never reach a backing store.
GatewayError and StoreError wrap collaborator failures. OrderRecordingError
is the one unrecoverable case: the gateway has confirmed a payment but the
order could not be written.
"""


class TillPointError(Exception):
    """Base class for infrastructure errors."""


class GatewayError(TillPointError):
    """The payment gateway refused or failed to initiate a payment."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        self.message = message
        self.retryable = retryable
        super().__init__(message)


class StoreError(TillPointError):
    """A backing store (order ledger, pending payments) failed."""


class OrderRecordingError(StoreError):
    """A confirmed mobile-money payment could not be recorded as an order."""

    def __init__(self, correlation_id: str, order_id: str, cause: str) -> None:
        self.correlation_id = correlation_id
        self.order_id = order_id
        self.cause = cause
        super().__init__(
            f"Payment received but order {order_id} could not be saved. "
            f"Please contact support with reference {correlation_id}."
        )


def first_message(messages) -> str:
    """The first human-readable message of a protean exception's ``messages``."""
    if isinstance(messages, dict):
        for field_messages in messages.values():
            if isinstance(field_messages, (list, tuple)) and field_messages:
                return str(field_messages[0])
            if field_messages:
                return str(field_messages)
        return "Invalid input"
    return str(messages)
