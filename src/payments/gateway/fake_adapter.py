"""Configurable fake payment gateway for development and testing.

This adapter simulates a card gateway without any external calls. It can be
configured at runtime to fail intent creation, decline the card, fail the
confirmation, or return a non-final status, making it useful for:
- Automated tests with predictable outcomes
- Development without real gateway credentials

Follows the same pattern as Stripe's test mode (``pi_..._secret_...`` client
secrets) but simplified.
"""

import asyncio
from uuid import uuid4

from payments.gateway.port import (
    SUCCEEDED,
    BillingDetails,
    CardDetails,
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
)

_SECRET_SEPARATOR = "_secret_"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.configure()

    def configure(
        self,
        intent_succeeds: bool = True,
        declined: bool = False,
        confirm_succeeds: bool = True,
        confirm_status: str = SUCCEEDED,
        failure_reason: str = "Your card was declined.",
        intent_id: str | None = None,
        latency: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime.

        Args:
            intent_succeeds: When False, ``create_intent`` fails.
            declined: When True, ``confirm`` reports a card decline.
            confirm_succeeds: When False, ``confirm`` fails without a decline
                (gateway or network error).
            confirm_status: Status reported by a successful confirmation.
            intent_id: Fixed id for the next intents (otherwise random).
            latency: Seconds to sleep in each call, to exercise in-flight
                behavior.
        """
        self.intent_succeeds = intent_succeeds
        self.declined = declined
        self.confirm_succeeds = confirm_succeeds
        self.confirm_status = confirm_status
        self.failure_reason = failure_reason
        self.intent_id = intent_id
        self.latency = latency

    async def _pause(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount_minor_units,
                "currency": currency,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )
        await self._pause()

        if not self.intent_succeeds:
            return IntentResult(success=False, failure_reason=self.failure_reason)

        intent_id = self.intent_id or f"pi_fake_{uuid4().hex[:12]}"
        return IntentResult(
            success=True,
            client_secret=f"{intent_id}{_SECRET_SEPARATOR}{uuid4().hex[:16]}",
            intent_id=intent_id,
        )

    async def confirm(
        self,
        client_secret: str,
        card: CardDetails,
        billing: BillingDetails,
    ) -> ConfirmationResult:
        self.calls.append(
            {
                "method": "confirm",
                "client_secret": client_secret,
                "card_last4": card.last4,
                "billing": billing,
            }
        )
        await self._pause()

        intent_id = client_secret.split(_SECRET_SEPARATOR, 1)[0]
        if self.declined:
            return ConfirmationResult(
                success=False,
                status="requires_payment_method",
                declined=True,
                failure_reason=self.failure_reason,
            )
        if not self.confirm_succeeds:
            return ConfirmationResult(success=False, failure_reason=self.failure_reason)
        return ConfirmationResult(success=True, status=self.confirm_status, gateway_reference=intent_id)
