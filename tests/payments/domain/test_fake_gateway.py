"""Tests for the configurable fake payment gateway and the gateway factory."""

import asyncio

import pytest
from payments.gateway import SUCCEEDED, BillingDetails, CardDetails, get_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway

CARD = CardDetails(token="tok_visa", last4="4242", brand="visa")
BILLING = BillingDetails(
    name="Asha Shrestha",
    email="asha@example.com",
    phone="9800000000",
    line1="Lazimpat 12",
    city="Kathmandu",
    postal_code="44600",
    country="NP",
)


def _charge(gateway, amount=3050000):
    async def flow():
        intent = await gateway.create_intent(amount, "npr", {"items": "[]"}, idempotency_key="attempt-1")
        if not intent.success:
            return intent, None
        return intent, await gateway.confirm(intent.client_secret, CARD, BILLING)

    return asyncio.run(flow())


class TestFakeGatewaySuccess:
    def test_intent_and_confirmation(self):
        intent, confirmation = _charge(FakeGateway())
        assert intent.success
        assert intent.client_secret.startswith(intent.intent_id)
        assert confirmation.success
        assert confirmation.status == SUCCEEDED
        assert confirmation.captured
        assert confirmation.gateway_reference == intent.intent_id

    def test_fixed_intent_id(self):
        gateway = FakeGateway()
        gateway.configure(intent_id="pi_123")
        _, confirmation = _charge(gateway)
        assert confirmation.gateway_reference == "pi_123"

    def test_calls_are_recorded(self):
        gateway = FakeGateway()
        _charge(gateway, amount=50000)
        assert [call["method"] for call in gateway.calls] == ["create_intent", "confirm"]
        assert gateway.calls[0]["amount"] == 50000
        assert gateway.calls[0]["currency"] == "npr"
        assert gateway.calls[0]["idempotency_key"] == "attempt-1"
        assert gateway.calls[1]["card_last4"] == "4242"


class TestFakeGatewayFailures:
    def test_intent_failure(self):
        gateway = FakeGateway()
        gateway.configure(intent_succeeds=False, failure_reason="Amount too large")
        intent, confirmation = _charge(gateway)
        assert not intent.success
        assert intent.failure_reason == "Amount too large"
        assert confirmation is None

    def test_decline(self):
        gateway = FakeGateway()
        gateway.configure(declined=True)
        _, confirmation = _charge(gateway)
        assert not confirmation.success
        assert confirmation.declined
        assert not confirmation.captured

    def test_confirmation_error(self):
        gateway = FakeGateway()
        gateway.configure(confirm_succeeds=False, failure_reason="Network error")
        _, confirmation = _charge(gateway)
        assert not confirmation.success
        assert not confirmation.declined
        assert confirmation.failure_reason == "Network error"

    def test_non_final_status(self):
        gateway = FakeGateway()
        gateway.configure(confirm_status="requires_action")
        _, confirmation = _charge(gateway)
        assert confirmation.success
        assert not confirmation.captured


class TestGatewayFactory:
    def test_default_is_fake(self):
        assert isinstance(get_gateway(), FakeGateway)

    def test_singleton(self):
        assert get_gateway() is get_gateway()

    def test_override(self):
        gateway = FakeGateway()
        set_gateway(gateway)
        assert get_gateway() is gateway

    def test_stripe_requires_key(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        with pytest.raises(ValueError):
            get_gateway()

    def test_stripe_selected(self, monkeypatch):
        from payments.gateway.stripe_adapter import StripeGateway

        monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        gateway = get_gateway()
        assert isinstance(gateway, StripeGateway)
        assert gateway.api_key == "sk_test_123"

    def test_unknown_gateway(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "paypal")
        with pytest.raises(ValueError):
            get_gateway()
