"""SQL pending-payment store.

One row per outstanding STK push. The draft is stored as JSON; rows written
by other tools sometimes hold the JSON as an encoded string, so reads accept
either form.
"""

import json
from datetime import UTC, datetime

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import JSON, String, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from ordering.order.draft import OrderDraft
from payments.pending.port import PendingPayment, PendingPaymentStore, as_utc
from shared.db import Base, session_factory
from shared.exceptions import StoreError

logger = structlog.get_logger(__name__)


class PendingPaymentRow(Base):
    __tablename__ = "pending_payments"

    correlation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_data: Mapped[dict] = mapped_column(JSON)
    # ISO-8601, UTC
    created_at: Mapped[str] = mapped_column(String(40), index=True)


def _draft_from(row: PendingPaymentRow) -> OrderDraft:
    data = row.order_data
    try:
        if isinstance(data, str):
            data = json.loads(data)
        return OrderDraft.model_validate(data)
    except (ValueError, PydanticValidationError) as exc:
        raise StoreError(f"Pending payment {row.correlation_id} holds an unreadable order: {exc}") from exc


class SqlPendingPaymentStore(PendingPaymentStore):
    def __init__(self, engine) -> None:
        self._session = session_factory(engine)

    def put(self, correlation_id: str, draft: OrderDraft, created_at: datetime | None = None) -> None:
        stamp = as_utc(created_at or datetime.now(UTC)).isoformat()
        try:
            with self._session.begin() as session:
                row = session.get(PendingPaymentRow, correlation_id)
                if row is None:
                    session.add(
                        PendingPaymentRow(
                            correlation_id=correlation_id,
                            order_data=draft.model_dump(mode="json"),
                            created_at=stamp,
                        )
                    )
                else:
                    row.order_data = draft.model_dump(mode="json")
                    row.created_at = stamp
        except SQLAlchemyError as exc:
            logger.error("Failed to store pending payment", correlation_id=correlation_id, error=str(exc))
            raise StoreError(f"Failed to store pending payment: {exc}") from exc

    def get(self, correlation_id: str) -> OrderDraft | None:
        try:
            with self._session() as session:
                row = session.get(PendingPaymentRow, correlation_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read pending payment: {exc}") from exc
        if row is None:
            return None
        return _draft_from(row)

    def delete(self, correlation_id: str) -> None:
        try:
            with self._session.begin() as session:
                session.execute(delete(PendingPaymentRow).where(PendingPaymentRow.correlation_id == correlation_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to delete pending payment: {exc}") from exc

    def list_older_than(self, cutoff: datetime) -> list[PendingPayment]:
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(PendingPaymentRow)
                    .where(PendingPaymentRow.created_at < as_utc(cutoff).isoformat())
                    .order_by(PendingPaymentRow.created_at)
                ).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to list pending payments: {exc}") from exc
        return [
            PendingPayment(
                correlation_id=row.correlation_id,
                draft=_draft_from(row),
                created_at=datetime.fromisoformat(row.created_at),
            )
            for row in rows
        ]
