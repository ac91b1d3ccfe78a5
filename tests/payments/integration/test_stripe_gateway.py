"""Integration tests for the Stripe adapter against a mocked SDK client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import stripe
from payments.gateway import BillingDetails, CardDetails
from payments.gateway.stripe_adapter import StripeGateway

CARD = CardDetails(token="tok_visa", last4="4242")
BILLING = BillingDetails(
    name="Asha Shrestha",
    email="asha@example.com",
    phone="9800000000",
    line1="Lazimpat 12",
    city="Kathmandu",
    postal_code="44600",
    country="NP",
)


def _client(confirmed_status="succeeded", confirm_error=None, create_error=None):
    client = MagicMock()
    client.payment_intents.create_async = AsyncMock(
        return_value=SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc", status="requires_payment_method"),
        side_effect=create_error,
    )
    client.payment_intents.confirm_async = AsyncMock(
        return_value=SimpleNamespace(id="pi_123", status=confirmed_status),
        side_effect=confirm_error,
    )
    return client


def _gateway(client):
    return StripeGateway(api_key="sk_test_123", client=client)


class TestCreateIntent:
    def test_sends_amount_currency_metadata_and_idempotency_key(self):
        client = _client()
        result = asyncio.run(
            _gateway(client).create_intent(3050000, "npr", {"items_0": '[{"id": "sofa-1"}]'}, idempotency_key="att-1")
        )

        assert result.success
        assert result.client_secret == "pi_123_secret_abc"
        assert result.intent_id == "pi_123"

        kwargs = client.payment_intents.create_async.await_args.kwargs
        assert kwargs["params"]["amount"] == 3050000
        assert kwargs["params"]["currency"] == "npr"
        assert kwargs["params"]["metadata"] == {"items_0": '[{"id": "sofa-1"}]'}
        assert kwargs["options"] == {"idempotency_key": "att-1"}

    def test_without_idempotency_key_no_option_is_sent(self):
        client = _client()
        asyncio.run(_gateway(client).create_intent(100, "npr", {}))
        assert client.payment_intents.create_async.await_args.kwargs["options"] == {}

    def test_api_error_is_a_failed_result(self):
        client = _client(create_error=stripe.InvalidRequestError("Invalid currency", "currency"))

        result = asyncio.run(_gateway(client).create_intent(100, "xxx", {}))
        assert not result.success
        assert result.failure_reason == "Invalid currency"

    def test_connection_error_is_a_failed_result(self):
        client = _client(create_error=stripe.APIConnectionError("connection refused"))

        result = asyncio.run(_gateway(client).create_intent(100, "npr", {}))
        assert not result.success
        assert "unreachable" in result.failure_reason


class TestConfirm:
    def test_sends_card_token_and_billing_details(self):
        client = _client()
        result = asyncio.run(_gateway(client).confirm("pi_123_secret_abc", CARD, BILLING))

        assert result.success
        assert result.captured
        assert result.gateway_reference == "pi_123"

        args = client.payment_intents.confirm_async.await_args
        assert args.args == ("pi_123",)
        method_data = args.kwargs["params"]["payment_method_data"]
        assert method_data["card"] == {"token": "tok_visa"}
        assert method_data["billing_details"]["name"] == "Asha Shrestha"
        assert method_data["billing_details"]["address"]["country"] == "NP"
        assert method_data["billing_details"]["address"]["postal_code"] == "44600"

    def test_card_error_is_a_decline(self):
        client = _client(confirm_error=stripe.CardError("Your card was declined.", None, "card_declined"))

        result = asyncio.run(_gateway(client).confirm("pi_123_secret_abc", CARD, BILLING))
        assert not result.success
        assert result.declined
        assert result.failure_reason == "Your card was declined."

    def test_server_error_is_not_a_decline(self):
        client = _client(confirm_error=stripe.APIError("upstream failure"))

        result = asyncio.run(_gateway(client).confirm("pi_123_secret_abc", CARD, BILLING))
        assert not result.success
        assert not result.declined
        assert result.failure_reason == "upstream failure"

    def test_requires_action_is_not_captured(self):
        client = _client(confirmed_status="requires_action")

        result = asyncio.run(_gateway(client).confirm("pi_123_secret_abc", CARD, BILLING))
        assert result.success
        assert result.status == "requires_action"
        assert not result.captured
