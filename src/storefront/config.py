"""Service settings read from the environment.

Protean itself is configured through ``[tool.protean]`` in pyproject.toml;
these are the knobs that belong to the storefront and its collaborators.
"""

import os
from dataclasses import dataclass

DEFAULT_CHECKOUT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class Settings:
    checkout_timeout_seconds: float = DEFAULT_CHECKOUT_TIMEOUT_SECONDS
    client_url: str = "http://localhost:5173"
    payment_currency: str = "inr"
    stripe_api_key: str | None = None
    stripe_webhook_secret: str | None = None
    ledger_url: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            checkout_timeout_seconds=float(
                os.environ.get("CHECKOUT_TIMEOUT_SECONDS", DEFAULT_CHECKOUT_TIMEOUT_SECONDS)
            ),
            client_url=os.environ.get("CLIENT_URL", cls.client_url).rstrip("/"),
            payment_currency=os.environ.get("PAYMENT_CURRENCY", cls.payment_currency).lower(),
            stripe_api_key=os.environ.get("STRIPE_API_KEY") or None,
            stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
            ledger_url=os.environ.get("STOREFRONT_LEDGER_URL") or None,
        )


def get_settings() -> Settings:
    return Settings.from_env()
