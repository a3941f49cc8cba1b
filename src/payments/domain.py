"""Payments bounded context: M-Pesa STK push payments.

Handles the mobile-money payment attempt (initiation, confirmation, failure),
the gateway abstraction, pending-payment records and callback reconciliation.
"""

import structlog
from protean.domain import Domain

payments = Domain(name="payments")

logger = structlog.get_logger(__name__)
