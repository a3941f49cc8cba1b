"""Payment gateway port (abstract interface).

Defines the contract that M-Pesa gateway adapters must implement. This
enables swapping between FakeGateway (dev/test) and StkPushGateway (the
STK-push initiation service) without changing any checkout code.

Initiation only asks the gateway to prompt the customer's phone; the outcome
of the payment arrives later as a callback, matched by correlation id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ordering.order.draft import OrderDraft


@dataclass(frozen=True)
class InitiationResult:
    """Result of a successful STK push initiation."""

    correlation_id: str
    checkout_request_id: str | None = None
    customer_message: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def initiate(self, amount: float, phone: str, order_draft: OrderDraft) -> InitiationResult:
        """Ask the gateway to prompt ``phone`` for ``amount``.

        Raises GatewayError when the gateway refuses, errors or times out.
        """
        ...
