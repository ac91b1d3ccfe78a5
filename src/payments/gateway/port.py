"""Payment gateway port (abstract interface).

Defines the two-step contract every card gateway adapter implements:
create a payment intent for an amount, then confirm it with the customer's
card. Swapping FakeGateway (dev/test) for StripeGateway (production) never
touches the checkout code.

Adapters report outcomes as result objects instead of raising, so callers
can tell a declined card from an unreachable gateway.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Gateway status of a captured payment
SUCCEEDED = "succeeded"

# Intent metadata limits (Stripe's: 50 keys, values up to 500 characters)
MAX_METADATA_KEYS = 50
MAX_METADATA_VALUE_LENGTH = 500


@dataclass(frozen=True)
class CardDetails:
    """A tokenized card as produced by the gateway's card element.

    Raw card numbers never reach this code; ``token`` is the gateway's
    single-use card token.
    """

    token: str
    last4: str | None = None
    brand: str | None = None


@dataclass(frozen=True)
class BillingDetails:
    name: str
    email: str
    phone: str
    line1: str
    city: str
    postal_code: str
    country: str


@dataclass(frozen=True)
class IntentResult:
    """Result of creating a payment intent."""

    success: bool
    client_secret: str | None = None
    intent_id: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    """Result of confirming a payment intent with a card.

    ``gateway_reference`` is the authorization id of the captured payment and
    is only meaningful when ``success`` is true and ``status`` is
    ``SUCCEEDED``.
    """

    success: bool
    status: str | None = None
    gateway_reference: str | None = None
    declined: bool = False
    failure_reason: str | None = None
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def captured(self) -> bool:
        return self.success and self.status == SUCCEEDED


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> IntentResult:
        """Create a payment intent for the amount, in the currency's minor units."""
        ...

    @abstractmethod
    async def confirm(
        self,
        client_secret: str,
        card: CardDetails,
        billing: BillingDetails,
    ) -> ConfirmationResult:
        """Confirm the intent identified by ``client_secret`` with a card."""
        ...
