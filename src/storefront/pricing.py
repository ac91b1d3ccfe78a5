"""Pricing Calculator.

Pure functions from cart lines to a priced snapshot. Pricing is never stored;
it is recomputed from the lines whenever it is needed, including at the
moment a checkout is submitted.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from storefront.cart.line import CartLine


@dataclass(frozen=True)
class ShippingPolicy:
    """Flat shipping fee, waived when the subtotal is above the threshold."""

    free_shipping_threshold: float = 50000.0
    fee: float = 500.0

    @classmethod
    def from_settings(cls, settings) -> "ShippingPolicy":
        return cls(free_shipping_threshold=settings.free_shipping_threshold, fee=settings.shipping_fee)

    def shipping_for(self, subtotal: float) -> float:
        return 0.0 if subtotal > self.free_shipping_threshold else self.fee


@dataclass(frozen=True)
class PricingSnapshot:
    subtotal: float
    shipping_cost: float
    total: float


def price(lines: Iterable[CartLine], policy: ShippingPolicy | None = None) -> PricingSnapshot:
    """Price a set of cart lines.

    An empty cart still carries the flat shipping fee; checkout refuses an
    empty cart before pricing matters.
    """
    policy = policy or ShippingPolicy()
    subtotal = sum((line.line_total for line in lines), 0.0)
    shipping_cost = policy.shipping_for(subtotal)
    return PricingSnapshot(subtotal=subtotal, shipping_cost=shipping_cost, total=subtotal + shipping_cost)


def to_minor_units(amount: float) -> int:
    """Convert an amount to the currency's minor units (paisa, cents)."""
    return round(amount * 100)
