"""Checkout sessions: one cart and one payment orchestrator per till screen.

The HTTP layer is stateless, so open checkouts are held in an in-process
``SessionRegistry``. A session lives until it is closed; closing stops
listening for M-Pesa callbacks but leaves any pending payment for
reconciliation.
"""

from collections import deque
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError

from catalogue.menu.repository import MenuCatalogue, get_catalogue
from ordering.cart.cart import Cart, CartLine
from ordering.order.events import OrderPlaced
from ordering.order.history import OrderHistory, get_order_history
from ordering.order.store import get_order_store
from payments.channel import get_channel
from payments.gateway import get_gateway
from payments.payment.events import PaymentFailed
from payments.payment.orchestrator import PaymentOrchestrator
from payments.pending import get_pending_store
from shared.config import get_settings

logger = structlog.get_logger(__name__)

MAX_NOTICES = 20


class CheckoutSession:
    def __init__(
        self,
        session_id: str,
        orchestrator: PaymentOrchestrator,
        catalogue: MenuCatalogue,
        history: OrderHistory | None = None,
    ) -> None:
        self.id = session_id
        self.orchestrator = orchestrator
        self.catalogue = catalogue
        self.history = history
        self.created_at = datetime.now(UTC)
        self.notices: deque[OrderPlaced | PaymentFailed] = deque(maxlen=MAX_NOTICES)
        orchestrator.subscribe(self._on_notice)

    def _on_notice(self, notice: OrderPlaced | PaymentFailed) -> None:
        self.notices.append(notice)
        order = self.orchestrator.last_order
        if self.history is not None and isinstance(notice, OrderPlaced) and order is not None:
            self.history.record(order)

    @property
    def cart(self) -> Cart:
        return self.orchestrator.cart

    def add_item(self, item_id: str) -> CartLine:
        """Add one unit of a menu item, priced from the catalogue."""
        return self.cart.add_item(self.catalogue.get(item_id))

    def update_quantity(self, item_id: str, new_quantity: int) -> None:
        self.cart.update_quantity(item_id, new_quantity)

    @property
    def last_notice(self) -> OrderPlaced | PaymentFailed | None:
        return self.notices[-1] if self.notices else None

    def close(self) -> None:
        self.orchestrator.close()


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, CheckoutSession] = {}

    def create(self) -> CheckoutSession:
        settings = get_settings()
        orchestrator = PaymentOrchestrator(
            cart=Cart.create(),
            order_store=get_order_store(),
            pending_store=get_pending_store(),
            gateway=get_gateway(),
            channel=get_channel(),
            confirmation_timeout=settings.confirmation_timeout_seconds,
            order_id_prefix=settings.order_id_prefix,
        )
        session = CheckoutSession(uuid4().hex, orchestrator, get_catalogue(), get_order_history())
        self._sessions[session.id] = session
        logger.info("Checkout session opened", session_id=session.id)
        return session

    def get(self, session_id: str) -> CheckoutSession:
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise ObjectNotFoundError({"session_id": [f"Checkout session {session_id} not found"]}) from None
        session.orchestrator.expire_if_overdue()
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise ObjectNotFoundError({"session_id": [f"Checkout session {session_id} not found"]})
        session.close()
        logger.info("Checkout session closed", session_id=session_id)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


def reset_session_registry() -> None:
    global _registry
    if _registry is not None:
        _registry.close_all()
    _registry = None
