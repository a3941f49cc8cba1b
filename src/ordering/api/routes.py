"""FastAPI routes for the Ordering domain: checkout sessions and orders."""

from fastapi import APIRouter, Response

from ordering.api.schemas import (
    AddItemRequest,
    CartLineSchema,
    CartResponse,
    CashPaymentRequest,
    MpesaPaymentRequest,
    NoticeSchema,
    OrderListResponse,
    OrderPlacedResponse,
    OrderResponse,
    PaymentStatusResponse,
    SessionResponse,
    StatusResponse,
    UpdateQuantityRequest,
)
from ordering.order.history import get_order_history
from ordering.session import CheckoutSession, get_session_registry
from shared.logging import add_context

# ---------------------------------------------------------------------------
# Session Router
# ---------------------------------------------------------------------------
session_router = APIRouter(prefix="/sessions", tags=["checkout"])


def _checkout(session_id: str) -> CheckoutSession:
    add_context(session_id=session_id)
    return get_session_registry().get(session_id)


def _session_response(session: CheckoutSession) -> SessionResponse:
    notice = session.last_notice
    return SessionResponse(
        session_id=session.id,
        cart=CartResponse.from_cart(session.cart),
        payment=PaymentStatusResponse.from_attempt(session.orchestrator.attempt),
        last_notice=NoticeSchema.from_notice(notice) if notice else None,
    )


@session_router.post("", status_code=201, response_model=SessionResponse)
async def open_session() -> SessionResponse:
    session = get_session_registry().create()
    add_context(session_id=session.id)
    return _session_response(session)


@session_router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str) -> SessionResponse:
    return _session_response(_checkout(session_id))


@session_router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str) -> Response:
    get_session_registry().close(session_id)
    return Response(status_code=204)


@session_router.post("/{session_id}/items", response_model=CartLineSchema)
async def add_item(session_id: str, body: AddItemRequest) -> CartLineSchema:
    line = _checkout(session_id).add_item(body.item_id)
    return CartLineSchema(
        id=str(line.item_id),
        name=line.name,
        unit_price=line.unit_price,
        quantity=line.quantity,
        line_total=line.line_total,
    )


@session_router.put("/{session_id}/items/{item_id}", response_model=CartResponse)
async def update_item_quantity(session_id: str, item_id: str, body: UpdateQuantityRequest) -> CartResponse:
    session = _checkout(session_id)
    session.update_quantity(item_id, body.new_quantity)
    return CartResponse.from_cart(session.cart)


@session_router.delete("/{session_id}/items", response_model=CartResponse)
async def clear_cart(session_id: str) -> CartResponse:
    session = _checkout(session_id)
    session.cart.clear()
    return CartResponse.from_cart(session.cart)


@session_router.post("/{session_id}/cash", status_code=201, response_model=OrderPlacedResponse)
async def pay_cash(session_id: str, body: CashPaymentRequest) -> OrderPlacedResponse:
    orchestrator = _checkout(session_id).orchestrator
    if body.cash_received is None:
        placed = orchestrator.pay_exact_cash()
    else:
        placed = orchestrator.pay_cash(body.cash_received)
    return OrderPlacedResponse.from_event(placed)


@session_router.post("/{session_id}/mpesa", status_code=202, response_model=PaymentStatusResponse)
async def pay_mpesa(session_id: str, body: MpesaPaymentRequest) -> PaymentStatusResponse:
    attempt = _checkout(session_id).orchestrator.start_mpesa(body.phone)
    return PaymentStatusResponse.from_attempt(attempt)


@session_router.get("/{session_id}/payment", response_model=PaymentStatusResponse)
async def payment_status(session_id: str) -> PaymentStatusResponse:
    return PaymentStatusResponse.from_attempt(_checkout(session_id).orchestrator.attempt)


@session_router.delete("/{session_id}/payment", response_model=PaymentStatusResponse)
async def reset_payment(session_id: str) -> PaymentStatusResponse:
    """Abandon the current attempt and start again from idle."""
    attempt = _checkout(session_id).orchestrator.reset()
    return PaymentStatusResponse.from_attempt(attempt)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])

@order_router.get("", response_model=OrderListResponse)
async def list_orders() -> OrderListResponse:
    history = get_order_history()
    orders = history.load()
    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in orders], stale=history.stale)


@order_router.delete("", response_model=StatusResponse)
async def clear_orders() -> StatusResponse:
    get_order_history().clear()
    return StatusResponse(status="cleared")


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def delete_order(order_id: str) -> StatusResponse:
    get_order_history().delete(order_id)
    return StatusResponse(status="deleted")
