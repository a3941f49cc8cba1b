"""SQL order ledger: one row per order line.

Every row repeats the order-level columns (order id, payment method, total,
cash or phone details), and rows are grouped back into an Order by
``order_id`` on read. Writes check for the order id first, which keeps
``save`` idempotent when a confirmation is replayed.
"""

from datetime import datetime

import structlog
from sqlalchemy import Float, Integer, String, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from ordering.order.order import Order, OrderItem
from ordering.order.store.port import OrderStore
from shared.db import Base, session_factory
from shared.exceptions import StoreError

logger = structlog.get_logger(__name__)


class OrderLedgerRow(Base):
    __tablename__ = "order_ledger"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(32), index=True)
    item_id: Mapped[str] = mapped_column(String(64))
    item_name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Float)
    payment_method: Mapped[str] = mapped_column(String(16))
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    total_amount: Mapped[float] = mapped_column(Float)
    cash_received: Mapped[float | None] = mapped_column(Float, nullable=True)
    change_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    mpesa_request_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    mpesa_receipt_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    settlement: Mapped[str] = mapped_column(String(32))
    # ISO-8601, UTC; sorts chronologically as text
    timestamp: Mapped[str] = mapped_column(String(40), index=True)


def _rows_for(order: Order) -> list[OrderLedgerRow]:
    return [
        OrderLedgerRow(
            order_id=str(order.id),
            item_id=str(item.item_id),
            item_name=item.name,
            quantity=item.quantity,
            price=item.price,
            payment_method=order.payment_method,
            phone_number=order.mpesa_number,
            total_amount=order.total,
            cash_received=order.cash_received,
            change_amount=order.change,
            mpesa_request_id=order.mpesa_request_id,
            mpesa_receipt_number=order.mpesa_receipt_number,
            settlement=order.settlement,
            timestamp=order.timestamp.isoformat(),
        )
        for item in order.items
    ]


def _order_from(rows: list[OrderLedgerRow]) -> Order:
    first = rows[0]
    order = Order(
        id=first.order_id,
        total=first.total_amount,
        payment_method=first.payment_method,
        timestamp=datetime.fromisoformat(first.timestamp),
        settlement=first.settlement,
        cash_received=first.cash_received,
        change=first.change_amount,
        mpesa_number=first.phone_number,
        mpesa_request_id=first.mpesa_request_id,
        mpesa_receipt_number=first.mpesa_receipt_number,
    )
    for row in sorted(rows, key=lambda r: r.id):
        order.add_items(OrderItem(item_id=row.item_id, name=row.item_name, price=row.price, quantity=row.quantity))
    return order


def _group(rows: list[OrderLedgerRow]) -> list[Order]:
    # Rows arrive newest first; keep that order per order_id
    grouped: dict[str, list[OrderLedgerRow]] = {}
    for row in rows:
        grouped.setdefault(row.order_id, []).append(row)
    return [_order_from(order_rows) for order_rows in grouped.values()]


class SqlOrderStore(OrderStore):
    def __init__(self, engine) -> None:
        self._session = session_factory(engine)

    def save(self, order: Order) -> bool:
        if not order.items:
            # The ledger stores lines; an order without lines has nothing to hold it
            raise StoreError(f"Order {order.id} has no items to record")
        try:
            with self._session.begin() as session:
                exists = session.scalar(select(OrderLedgerRow.id).where(OrderLedgerRow.order_id == order.id).limit(1))
                if exists is not None:
                    logger.info("Order already recorded, skipping write", order_id=order.id)
                    return False
                session.add_all(_rows_for(order))
        except SQLAlchemyError as exc:
            logger.error("Failed to save order", order_id=order.id, error=str(exc))
            raise StoreError(f"Failed to save order: {exc}") from exc

        logger.info("Order saved", order_id=order.id, payment_method=order.payment_method, total=order.total)
        return True

    def fetch_all(self) -> list[Order]:
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(OrderLedgerRow).order_by(OrderLedgerRow.timestamp.desc(), OrderLedgerRow.id)
                ).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to fetch orders", error=str(exc))
            raise StoreError(f"Failed to fetch orders: {exc}") from exc
        return _group(list(rows))

    def clear_all(self) -> None:
        try:
            with self._session.begin() as session:
                session.execute(delete(OrderLedgerRow))
        except SQLAlchemyError as exc:
            logger.error("Failed to clear orders", error=str(exc))
            raise StoreError(f"Failed to clear orders: {exc}") from exc

    def delete(self, order_id: str) -> None:
        try:
            with self._session.begin() as session:
                session.execute(delete(OrderLedgerRow).where(OrderLedgerRow.order_id == order_id))
        except SQLAlchemyError as exc:
            logger.error("Failed to delete order", order_id=order_id, error=str(exc))
            raise StoreError(f"Failed to delete order: {exc}") from exc

    def find_by_request_id(self, mpesa_request_id: str) -> Order | None:
        try:
            with self._session() as session:
                order_id = session.scalar(
                    select(OrderLedgerRow.order_id).where(OrderLedgerRow.mpesa_request_id == mpesa_request_id).limit(1)
                )
                if order_id is None:
                    return None
                rows = session.scalars(select(OrderLedgerRow).where(OrderLedgerRow.order_id == order_id)).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to look up order for {mpesa_request_id}: {exc}") from exc
        return _order_from(list(rows))
