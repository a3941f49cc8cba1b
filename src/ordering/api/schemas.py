"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Cart and Order models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ordering.cart.cart import Cart
from ordering.order.events import OrderPlaced
from ordering.order.order import Order
from payments.payment.attempt import MobileMoneyAttempt
from payments.payment.events import PaymentFailed


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    id: str
    name: str
    unit_price: float
    quantity: int
    line_total: float


class OrderItemSchema(BaseModel):
    id: str
    name: str
    price: float
    quantity: int


class NoticeSchema(BaseModel):
    kind: str
    order_id: str | None = None
    total: float | None = None
    change: float | None = None
    mpesa_receipt_number: str | None = None
    reason: str | None = None
    requires_support: bool = False

    @classmethod
    def from_notice(cls, notice: OrderPlaced | PaymentFailed) -> "NoticeSchema":
        if isinstance(notice, OrderPlaced):
            return cls(
                kind="order_placed",
                order_id=str(notice.order_id),
                total=notice.total,
                change=notice.change,
                mpesa_receipt_number=notice.mpesa_receipt_number,
            )
        return cls(kind="payment_failed", reason=notice.reason, requires_support=notice.requires_support)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class AddItemRequest(BaseModel):
    item_id: str

    model_config = {"json_schema_extra": {"examples": [{"item_id": "d1"}]}}


class UpdateQuantityRequest(BaseModel):
    # Zero or less removes the line
    new_quantity: int


class CashPaymentRequest(BaseModel):
    # Omitted means exact cash for the total
    cash_received: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class MpesaPaymentRequest(BaseModel):
    phone: str

    model_config = {"json_schema_extra": {"examples": [{"phone": "0712345678"}]}}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    items: list[CartLineSchema]
    total: float
    item_count: int

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartResponse":
        return cls(
            items=[
                CartLineSchema(
                    id=str(line.item_id),
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in cart.items
            ],
            total=cart.total,
            item_count=cart.item_count,
        )


class PaymentStatusResponse(BaseModel):
    state: str
    correlation_id: str | None = None
    order_id: str | None = None
    phone: str | None = None
    mpesa_receipt_number: str | None = None
    failure_reason: str | None = None
    requires_support: bool = False

    @classmethod
    def from_attempt(cls, attempt: MobileMoneyAttempt) -> "PaymentStatusResponse":
        return cls(
            state=attempt.state,
            correlation_id=attempt.correlation_id,
            order_id=attempt.order_id or (attempt.order_draft.id if attempt.order_draft else None),
            phone=attempt.canonical_phone,
            mpesa_receipt_number=attempt.mpesa_receipt_number,
            failure_reason=attempt.failure_reason,
            requires_support=bool(attempt.requires_support),
        )


class SessionResponse(BaseModel):
    session_id: str
    cart: CartResponse
    payment: PaymentStatusResponse
    last_notice: NoticeSchema | None = None


class OrderPlacedResponse(BaseModel):
    order_id: str
    total: float
    payment_method: str
    item_count: int
    settlement: str
    change: float | None = None
    mpesa_receipt_number: str | None = None

    @classmethod
    def from_event(cls, event: OrderPlaced) -> "OrderPlacedResponse":
        return cls(
            order_id=str(event.order_id),
            total=event.total,
            payment_method=event.payment_method,
            item_count=event.item_count,
            settlement=event.settlement,
            change=event.change,
            mpesa_receipt_number=event.mpesa_receipt_number,
        )


class OrderResponse(BaseModel):
    id: str
    items: list[OrderItemSchema]
    total: float
    payment_method: str
    timestamp: datetime
    settlement: str
    cash_received: float | None = None
    change: float | None = None
    mpesa_number: str | None = None
    mpesa_request_id: str | None = None
    mpesa_receipt_number: str | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            items=[
                OrderItemSchema(id=str(item.item_id), name=item.name, price=item.price, quantity=item.quantity)
                for item in order.items or []
            ],
            total=order.total,
            payment_method=order.payment_method,
            timestamp=order.timestamp,
            settlement=order.settlement,
            cash_received=order.cash_received,
            change=order.change,
            mpesa_number=order.mpesa_number,
            mpesa_request_id=order.mpesa_request_id,
            mpesa_receipt_number=order.mpesa_receipt_number,
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    stale: bool = False


class StatusResponse(BaseModel):
    status: str = "ok"
