"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer), separate from the
internal callback and pending-payment models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from payments.mpesa.phone import PhoneFeedback
from payments.pending.port import PendingPayment


# ---------------------------------------------------------------------------
# M-Pesa
# ---------------------------------------------------------------------------
class PhoneFeedbackResponse(BaseModel):
    digits: str
    formatted: str
    valid: bool
    error: str | None = None

    @classmethod
    def from_feedback(cls, feedback: PhoneFeedback) -> "PhoneFeedbackResponse":
        return cls(digits=feedback.digits, formatted=feedback.formatted, valid=feedback.valid, error=feedback.error)


class CallbackResponse(BaseModel):
    # delivered | reconciled | duplicate | unmatched | ignored
    status: str
    correlation_id: str
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Unable to initiate M-Pesa payment"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


# ---------------------------------------------------------------------------
# Pending payments
# ---------------------------------------------------------------------------
class SweepPendingRequest(BaseModel):
    older_than_hours: int = Field(default=24, ge=0)
    as_of: datetime | None = None


class OrphanSchema(BaseModel):
    correlation_id: str
    order_id: str
    total: float
    phone: str
    created_at: datetime

    @classmethod
    def from_pending(cls, pending: PendingPayment) -> "OrphanSchema":
        return cls(
            correlation_id=pending.correlation_id,
            order_id=pending.draft.id,
            total=pending.draft.total,
            phone=pending.draft.mpesa_number,
            created_at=pending.created_at,
        )


class SweepPendingResponse(BaseModel):
    orphan_count: int
    orphans: list[OrphanSchema]
