"""FastAPI routes for the Payments domain: M-Pesa callbacks and maintenance."""

import secrets
from typing import Any

import structlog
from fastapi import APIRouter, Body, Header, HTTPException

from ordering.order.store import get_order_store
from payments.api.schemas import (
    CallbackResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    OrphanSchema,
    PhoneFeedbackResponse,
    SweepPendingRequest,
    SweepPendingResponse,
)
from payments.channel import get_channel
from payments.channel.events import CallbackEvent
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.mpesa.phone import phone_feedback
from payments.payment.reconciliation import PaymentReconciler, sweep_orphaned_payments
from payments.pending import get_pending_store
from shared.config import get_settings
from shared.logging import add_context

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# M-Pesa Router
# ---------------------------------------------------------------------------
mpesa_router = APIRouter(prefix="/mpesa", tags=["mpesa"])

_reconciler: PaymentReconciler | None = None


def get_reconciler() -> PaymentReconciler:
    global _reconciler
    order_store, pending_store = get_order_store(), get_pending_store()
    if _reconciler is None or _reconciler.order_store is not order_store or _reconciler.pending_store is not pending_store:
        _reconciler = PaymentReconciler(order_store, pending_store)
    return _reconciler


@mpesa_router.get("/phone-feedback", response_model=PhoneFeedbackResponse)
async def get_phone_feedback(phone: str = "") -> PhoneFeedbackResponse:
    """Live formatting and validation feedback for a phone number being typed."""
    return PhoneFeedbackResponse.from_feedback(phone_feedback(phone))


@mpesa_router.post("/callback", response_model=CallbackResponse)
async def receive_callback(
    payload: dict[str, Any] = Body(...),
    x_callback_token: str = Header(default=""),
) -> CallbackResponse:
    """Receive an STK push result from the gateway (or its webhook relay)."""
    expected = get_settings().callback_token
    if expected and not secrets.compare_digest(x_callback_token, expected):
        raise HTTPException(status_code=401, detail="Invalid callback token")

    event = CallbackEvent.from_payload(payload)
    add_context(correlation_id=event.correlation_id)
    if get_channel().deliver(event):
        return CallbackResponse(status="delivered", correlation_id=event.correlation_id)

    outcome = get_reconciler().handle(event)
    return CallbackResponse(
        status=outcome.status,
        correlation_id=event.correlation_id,
        order_id=str(outcome.order.id) if outcome.order is not None else None,
    )


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when TILLPOINT_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if get_settings().is_production:
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


@payment_router.post("/pending/sweep", response_model=SweepPendingResponse)
async def sweep_pending(body: SweepPendingRequest | None = None) -> SweepPendingResponse:
    """List pending M-Pesa payments that were never resolved.

    Designed to be called periodically by an external scheduler. Records are
    reported, not deleted.
    """
    body = body or SweepPendingRequest()
    orphans = sweep_orphaned_payments(get_pending_store(), body.older_than_hours, body.as_of)
    return SweepPendingResponse(
        orphan_count=len(orphans),
        orphans=[OrphanSchema.from_pending(orphan) for orphan in orphans],
    )
