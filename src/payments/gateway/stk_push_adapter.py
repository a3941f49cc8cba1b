"""STK push gateway adapter.

Talks to the service that fronts Safaricom's Daraja STK push API. The
service takes ``{amount, phoneNumber, orderData}`` and answers with

    {"success": true,  "MerchantRequestID": "...", "CheckoutRequestID": "...", "CustomerMessage": "..."}
    {"success": false, "error": "..."}

``MerchantRequestID`` is the correlation id the later callback is matched on.
"""

import httpx
import structlog

from ordering.order.draft import OrderDraft
from payments.gateway.port import InitiationResult, PaymentGateway
from shared.exceptions import GatewayError

logger = structlog.get_logger(__name__)


def _amount_text(amount: float) -> str:
    # 150.0 goes out as "150"
    return str(int(amount)) if float(amount).is_integer() else str(amount)


class StkPushGateway(PaymentGateway):
    """Production gateway adapter over HTTP."""

    def __init__(self, initiate_url: str, timeout_seconds: float = 30.0, client: httpx.Client | None = None) -> None:
        self.initiate_url = initiate_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self.initiate_url, json=payload, timeout=self.timeout_seconds)
        with httpx.Client(timeout=self.timeout_seconds) as client:
            return client.post(self.initiate_url, json=payload)

    def initiate(self, amount: float, phone: str, order_draft: OrderDraft) -> InitiationResult:
        payload = {
            "amount": _amount_text(amount),
            "phoneNumber": phone,
            "orderData": order_draft.model_dump(mode="json"),
        }

        try:
            response = self._post(payload)
        except httpx.TimeoutException as exc:
            logger.warning("STK push initiation timed out", order_id=order_draft.id, url=self.initiate_url)
            raise GatewayError("M-Pesa did not respond in time. Please try again.") from exc
        except httpx.HTTPError as exc:
            logger.warning("STK push initiation failed", order_id=order_draft.id, error=str(exc))
            raise GatewayError(f"Unable to reach M-Pesa: {exc}") from exc
        except httpx.InvalidURL as exc:
            logger.error("STK push initiation URL is invalid", order_id=order_draft.id, url=self.initiate_url)
            raise GatewayError("M-Pesa is not configured correctly", retryable=False) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or not body.get("success"):
            message = body.get("error") or body.get("errorMessage") or f"M-Pesa request failed ({response.status_code})"
            logger.warning(
                "STK push initiation rejected",
                order_id=order_draft.id,
                status_code=response.status_code,
                error=message,
            )
            raise GatewayError(str(message), retryable=not response.is_client_error)

        correlation_id = body.get("MerchantRequestID")
        if not correlation_id:
            raise GatewayError("M-Pesa response did not include a request id")

        logger.info("STK push initiated", order_id=order_draft.id, correlation_id=correlation_id)
        return InitiationResult(
            correlation_id=str(correlation_id),
            checkout_request_id=body.get("CheckoutRequestID"),
            customer_message=body.get("CustomerMessage"),
        )
