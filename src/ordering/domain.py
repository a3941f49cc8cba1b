"""Ordering bounded context: Cart and Order Ledger.

Handles the till's in-progress cart and the immutable orders written when a
checkout is settled in cash or confirmed by M-Pesa.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
