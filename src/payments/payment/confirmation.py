"""Turning a confirmed M-Pesa callback into a recorded order.

Shared by the live checkout (PaymentOrchestrator) and by late-callback
reconciliation. The order write is the critical step: everything before it
degrades gracefully, everything after it is best effort.
"""

import structlog

from ordering.order.draft import OrderDraft
from ordering.order.order import Order, Settlement
from ordering.order.store.port import OrderStore
from payments.pending.port import PendingPaymentStore
from shared.exceptions import OrderRecordingError, StoreError

logger = structlog.get_logger(__name__)


def recover_draft(pending_store: PendingPaymentStore, correlation_id: str) -> OrderDraft | None:
    """The parked draft for ``correlation_id``; None when missing or unreadable."""
    try:
        return pending_store.get(correlation_id)
    except StoreError as exc:
        logger.warning("Could not read pending payment", correlation_id=correlation_id, error=str(exc))
        return None


def record_confirmed_order(
    order_store: OrderStore,
    pending_store: PendingPaymentStore,
    correlation_id: str,
    draft: OrderDraft,
    settlement: Settlement,
    mpesa_receipt_number: str | None = None,
) -> tuple[Order, bool]:
    """Write the order for a confirmed payment and drop its pending record.

    Returns ``(order, created)``; ``created`` is False when an order for this
    correlation id was already on the ledger (a replayed callback). Raises
    OrderRecordingError when the write fails.
    """
    try:
        existing = order_store.find_by_request_id(correlation_id)
    except StoreError as exc:
        # save() is still idempotent on order id
        logger.warning("Duplicate check failed, writing anyway", correlation_id=correlation_id, error=str(exc))
        existing = None

    if existing is not None:
        logger.info("Payment already recorded", correlation_id=correlation_id, order_id=existing.id)
        _discard_pending(pending_store, correlation_id)
        return existing, False

    order = Order.from_draft(draft, settlement, correlation_id, mpesa_receipt_number)
    try:
        created = order_store.save(order)
    except StoreError as exc:
        logger.error(
            "Confirmed payment could not be recorded",
            correlation_id=correlation_id,
            order_id=order.id,
            total=order.total,
            error=str(exc),
        )
        raise OrderRecordingError(correlation_id, order.id, str(exc)) from exc

    if order.is_reconstructed:
        logger.warning("Order reconstructed from session state", correlation_id=correlation_id, order_id=order.id)

    _discard_pending(pending_store, correlation_id)
    return order, created


def _discard_pending(pending_store: PendingPaymentStore, correlation_id: str) -> None:
    try:
        pending_store.delete(correlation_id)
    except StoreError as exc:
        logger.warning(
            "Could not delete pending payment, order is already saved",
            correlation_id=correlation_id,
            error=str(exc),
        )
