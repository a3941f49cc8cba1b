"""Reconciliation of M-Pesa payments that no checkout session saw finish.

Two cases end up here:

- a callback arrives after the till screen was closed (or the session timed
  out or the process restarted), so no live subscription receives it;
- a pending record is never resolved at all because the callback was lost.

The first is handled by ``PaymentReconciler`` as callbacks come in. The
second is surfaced by ``sweep_orphaned_payments``, designed to be triggered
periodically by an external scheduler (cron, K8s CronJob) via the maintenance
API endpoint or ``manage.py sweep-pending``.
"""

from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from ordering.order.order import Order, Settlement
from ordering.order.store.port import OrderStore
from payments.channel.events import CallbackEvent
from payments.payment.confirmation import record_confirmed_order, recover_draft
from payments.pending.port import PendingPayment, PendingPaymentStore, as_utc
from shared.exceptions import StoreError

logger = structlog.get_logger(__name__)

DEFAULT_ORPHAN_THRESHOLD_HOURS = 24
MAX_UNMATCHED = 100


@dataclass(frozen=True)
class Reconciliation:
    """What became of an unattended callback.

    ``status`` is one of ``reconciled`` (order written now), ``duplicate``
    (order already on the ledger), ``unmatched`` (paid, but no order can be
    found or rebuilt) or ``ignored`` (failure callback).
    """

    status: str
    order: Order | None = None


class PaymentReconciler:
    """Records orders for confirmed payments that arrive with nobody waiting."""

    def __init__(self, order_store: OrderStore, pending_store: PendingPaymentStore) -> None:
        self.order_store = order_store
        self.pending_store = pending_store
        # Most recent only; every one is also logged
        self.unmatched: deque[CallbackEvent] = deque(maxlen=MAX_UNMATCHED)

    def handle(self, event: CallbackEvent) -> Reconciliation:
        if not event.succeeded:
            # Left in place for manual follow-up
            logger.info(
                "Unattended failure callback, pending payment kept",
                correlation_id=event.correlation_id,
                result_code=event.result_code,
                result_description=event.result_description,
            )
            return Reconciliation("ignored")

        draft = recover_draft(self.pending_store, event.correlation_id)
        if draft is None:
            existing = self._already_recorded(event.correlation_id)
            if existing is not None:
                logger.info(
                    "Replayed confirmation for a recorded order",
                    correlation_id=event.correlation_id,
                    order_id=str(existing.id),
                )
                return Reconciliation("duplicate", existing)

            logger.error(
                "Confirmed payment has no pending order",
                correlation_id=event.correlation_id,
                receipt=event.receipt.mpesa_receipt_number if event.receipt else None,
                amount=event.receipt.amount if event.receipt else None,
            )
            self.unmatched.append(event)
            return Reconciliation("unmatched")

        order, created = record_confirmed_order(
            self.order_store,
            self.pending_store,
            event.correlation_id,
            draft,
            Settlement.RECONCILED_FROM_STORE,
            event.receipt.mpesa_receipt_number if event.receipt else None,
        )
        if not created:
            return Reconciliation("duplicate", order)
        logger.info("Late confirmation recorded", correlation_id=event.correlation_id, order_id=str(order.id))
        return Reconciliation("reconciled", order)

    def _already_recorded(self, correlation_id: str) -> Order | None:
        try:
            return self.order_store.find_by_request_id(correlation_id)
        except StoreError as exc:
            logger.warning("Could not check for a recorded order", correlation_id=correlation_id, error=str(exc))
            return None


def sweep_orphaned_payments(
    pending_store: PendingPaymentStore,
    older_than_hours: int = DEFAULT_ORPHAN_THRESHOLD_HOURS,
    as_of: datetime | None = None,
) -> list[PendingPayment]:
    """List pending payments older than the threshold. Nothing is deleted.

    A naive ``as_of`` is taken to be UTC.
    """
    as_of = as_utc(as_of) if as_of is not None else datetime.now(UTC)
    cutoff = as_of - timedelta(hours=older_than_hours)

    logger.info(
        "Checking for orphaned pending payments",
        cutoff=cutoff.isoformat(),
        threshold_hours=older_than_hours,
    )

    orphans = pending_store.list_older_than(cutoff)
    if not orphans:
        logger.info("No orphaned pending payments found")
        return []

    for orphan in orphans:
        logger.warning(
            "Orphaned pending payment",
            correlation_id=orphan.correlation_id,
            order_id=orphan.draft.id,
            total=orphan.draft.total,
            phone=orphan.draft.mpesa_number,
            created_at=orphan.created_at.isoformat(),
        )

    logger.info("Orphan sweep complete", orphan_count=len(orphans))
    return orphans
