"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StripeGateway when STRIPE_API_KEY and STRIPE_WEBHOOK_SECRET are set
- FakeGateway for development and testing otherwise
"""

from storefront.config import get_settings
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.payments.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building the configured default on first use."""
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.stripe_api_key and settings.stripe_webhook_secret:
            _current_gateway = StripeGateway(
                api_key=settings.stripe_api_key,
                webhook_secret=settings.stripe_webhook_secret,
                success_url=f"{settings.client_url}/success",
                cancel_url=f"{settings.client_url}/cancel",
                currency=settings.payment_currency,
            )
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
