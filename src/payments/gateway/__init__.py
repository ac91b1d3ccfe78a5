"""Payment gateway factory.

Provides get_gateway() / set_gateway() / reset_gateway() to swap
implementations:
- FakeGateway for development and testing (default)
- StripeGateway for production (``PAYMENT_GATEWAY=stripe`` with
  ``STRIPE_SECRET_KEY``)
"""

import os

from payments.gateway.port import (
    MAX_METADATA_KEYS,
    MAX_METADATA_VALUE_LENGTH,
    SUCCEEDED,
    BillingDetails,
    CardDetails,
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
)

_current_gateway: PaymentGateway | None = None

__all__ = [
    "MAX_METADATA_KEYS",
    "MAX_METADATA_VALUE_LENGTH",
    "SUCCEEDED",
    "BillingDetails",
    "CardDetails",
    "ConfirmationResult",
    "IntentResult",
    "PaymentGateway",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]


def get_gateway() -> PaymentGateway:
    """Return the configured payment gateway (singleton)."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
        if adapter == "fake":
            from payments.gateway.fake_adapter import FakeGateway

            _current_gateway = FakeGateway()
        elif adapter == "stripe":
            from payments.gateway.stripe_adapter import StripeGateway

            api_key = os.environ.get("STRIPE_SECRET_KEY")
            if not api_key:
                raise ValueError("STRIPE_SECRET_KEY is required for the stripe gateway")
            _current_gateway = StripeGateway(api_key=api_key)
        else:
            raise ValueError(f"Unknown payment gateway: {adapter}")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the configured default."""
    global _current_gateway
    _current_gateway = None
