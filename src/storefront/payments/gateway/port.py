"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing checkout or webhook code. Adapters receive
their credentials through the constructor.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class SessionLine:
    """One priced line shown on the hosted checkout page."""

    name: str
    unit_amount: int  # Smallest currency unit
    quantity: int
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


@dataclass(frozen=True)
class PaymentEvent:
    """A verified webhook event."""

    event_id: str
    event_type: str
    payment_intent_id: str | None = None
    metadata: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_checkout_session(
        self,
        lines: Sequence[SessionLine],
        metadata: dict[str, str],
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        """Open a hosted checkout session and return where to send the shopper."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        """Verify a webhook payload and parse it.

        Raises ``SignatureError`` when the payload is not authentically from
        the gateway.
        """
        ...
