"""Stripe payment gateway adapter.

Built on the stripe-python SDK: a PaymentIntent is created server-side and
then confirmed with the tokenized card and the customer's billing details.
The async SDK methods run over ``stripe.HTTPXClient``.

``stripe.CardError`` is a decline. Any other ``stripe.StripeError`` becomes a
failed result; nothing is raised to the caller.
"""

import stripe
import structlog

from payments.gateway.port import (
    BillingDetails,
    CardDetails,
    ConfirmationResult,
    IntentResult,
    PaymentGateway,
)

logger = structlog.get_logger(__name__)

_SECRET_SEPARATOR = "_secret_"


def _reason(exc: stripe.StripeError) -> str:
    if isinstance(exc, stripe.APIConnectionError):
        return f"Payment gateway unreachable: {exc.user_message or exc}"
    return exc.user_message or str(exc) or "Payment gateway error"


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, client: stripe.StripeClient | None = None) -> None:
        self.api_key = api_key
        self.client = client or stripe.StripeClient(api_key, http_client=stripe.HTTPXClient())

    async def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> IntentResult:
        params = {
            "amount": amount_minor_units,
            "currency": currency,
            "payment_method_types": ["card"],
            "metadata": dict(metadata),
        }
        options = {"idempotency_key": idempotency_key} if idempotency_key else {}

        try:
            intent = await self.client.payment_intents.create_async(params=params, options=options)
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected intent", error_type=type(exc).__name__, reason=_reason(exc))
            return IntentResult(success=False, failure_reason=_reason(exc))

        return IntentResult(success=True, client_secret=intent.client_secret, intent_id=intent.id)

    async def confirm(
        self,
        client_secret: str,
        card: CardDetails,
        billing: BillingDetails,
    ) -> ConfirmationResult:
        # Stripe client secrets are "<intent id>_secret_<nonce>"
        intent_id = client_secret.split(_SECRET_SEPARATOR, 1)[0]
        params = {
            "payment_method_data": {
                "type": "card",
                "card": {"token": card.token},
                "billing_details": {
                    "name": billing.name,
                    "email": billing.email,
                    "phone": billing.phone,
                    "address": {
                        "line1": billing.line1,
                        "city": billing.city,
                        "postal_code": billing.postal_code,
                        "country": billing.country,
                    },
                },
            },
        }

        try:
            intent = await self.client.payment_intents.confirm_async(intent_id, params=params)
        except stripe.CardError as exc:
            logger.warning("Stripe declined card", intent_id=intent_id, decline_code=exc.code)
            return ConfirmationResult(success=False, declined=True, failure_reason=_reason(exc))
        except stripe.StripeError as exc:
            logger.warning("Stripe confirmation failed", intent_id=intent_id, error_type=type(exc).__name__)
            return ConfirmationResult(success=False, failure_reason=_reason(exc))

        return ConfirmationResult(
            success=True,
            status=intent.status,
            gateway_reference=intent.id or intent_id,
            raw={"id": intent.id, "status": intent.status},
        )
