"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StkPushGateway when TILLPOINT_MPESA_INITIATE_URL is configured
- FakeGateway for development and testing otherwise
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.stk_push_adapter import StkPushGateway
from shared.config import get_settings

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.mpesa_initiate_url:
            _current_gateway = StkPushGateway(settings.mpesa_initiate_url, settings.gateway_timeout_seconds)
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
