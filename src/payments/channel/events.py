"""Gateway callback events as they reach the till.

The webhook relay pushes the STK callback flattened:

    {"MerchantRequestID": "...", "CheckoutRequestID": "...", "ResultCode": 0,
     "ResultDesc": "...", "CallbackMetadata": {"Item": [{"Name": "Amount", "Value": 500}, ...]}}

while Daraja itself posts the same fields wrapped in ``{"Body": {"stkCallback": {...}}}``.
``CallbackEvent.from_payload`` accepts both.
"""

from typing import Any

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict


class ReceiptMetadata(BaseModel):
    """Payment reference details attached to a successful callback."""

    model_config = ConfigDict(frozen=True)

    amount: float | None = None
    mpesa_receipt_number: str | None = None
    transaction_date: str | None = None
    phone_number: str | None = None

    @classmethod
    def from_items(cls, items: list[dict[str, Any]]) -> "ReceiptMetadata":
        values = {item.get("Name"): item.get("Value") for item in items if isinstance(item, dict)}

        def text(name: str) -> str | None:
            value = values.get(name)
            return None if value is None else str(value)

        amount = values.get("Amount")
        return cls(
            amount=float(amount) if isinstance(amount, (int, float)) else None,
            mpesa_receipt_number=text("MpesaReceiptNumber"),
            transaction_date=text("TransactionDate"),
            phone_number=text("PhoneNumber"),
        )


class CallbackEvent(BaseModel):
    """The outcome of one STK push, correlated by ``MerchantRequestID``."""

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    result_code: int
    result_description: str = ""
    checkout_request_id: str | None = None
    receipt: ReceiptMetadata | None = None

    @property
    def succeeded(self) -> bool:
        return self.result_code == 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CallbackEvent":
        if not isinstance(payload, dict):
            raise ValidationError({"payload": ["Callback payload must be a JSON object"]})

        body = payload.get("Body")
        if isinstance(body, dict) and isinstance(body.get("stkCallback"), dict):
            payload = body["stkCallback"]

        correlation_id = payload.get("MerchantRequestID")
        if not correlation_id:
            raise ValidationError({"MerchantRequestID": ["Callback carries no MerchantRequestID"]})

        try:
            result_code = int(payload.get("ResultCode"))
        except (TypeError, ValueError):
            raise ValidationError({"ResultCode": ["Callback carries no numeric ResultCode"]}) from None

        receipt = None
        metadata = payload.get("CallbackMetadata")
        if isinstance(metadata, dict) and isinstance(metadata.get("Item"), list):
            receipt = ReceiptMetadata.from_items(metadata["Item"])

        return cls(
            correlation_id=str(correlation_id),
            result_code=result_code,
            result_description=str(payload.get("ResultDesc") or ""),
            checkout_request_id=payload.get("CheckoutRequestID"),
            receipt=receipt,
        )
