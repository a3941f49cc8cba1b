"""Configurable fake M-Pesa gateway for development and testing.

This adapter simulates STK push initiation without any external calls.
It can be configured at runtime to succeed or fail, making it useful for:
- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Development without Daraja credentials

Correlation ids it hands out look like ``fake_mrq_<hex>``; a test (or a
developer with curl) completes the payment by posting a callback for that id.
"""

from uuid import uuid4

from ordering.order.draft import OrderDraft
from payments.gateway.port import InitiationResult, PaymentGateway
from shared.exceptions import GatewayError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Unable to initiate M-Pesa payment"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Unable to initiate M-Pesa payment") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def initiate(self, amount: float, phone: str, order_draft: OrderDraft) -> InitiationResult:
        call = {
            "method": "initiate",
            "amount": amount,
            "phone": phone,
            "order_id": order_draft.id,
            "correlation_id": None,
        }
        self.calls.append(call)

        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        token = uuid4().hex[:12]
        call["correlation_id"] = f"fake_mrq_{token}"
        return InitiationResult(
            correlation_id=call["correlation_id"],
            checkout_request_id=f"fake_ckt_{token}",
            customer_message="Success. Request accepted for processing",
        )
