"""Storefront checkout settings, read from the environment at startup."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutSettings:
    free_shipping_threshold: float = 50000.0
    shipping_fee: float = 500.0
    currency: str = "npr"
    billing_country_code: str = "NP"
    history_page_size: int = 3
    order_service_url: str | None = None
    cart_storage_path: str | None = None

    @classmethod
    def from_env(cls, environ=None) -> "CheckoutSettings":
        """Build settings from environment variables, falling back to the defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            free_shipping_threshold=float(env.get("FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold)),
            shipping_fee=float(env.get("SHIPPING_FEE", defaults.shipping_fee)),
            currency=env.get("STORE_CURRENCY", defaults.currency).lower(),
            billing_country_code=env.get("BILLING_COUNTRY_CODE", defaults.billing_country_code).upper(),
            history_page_size=int(env.get("ORDER_HISTORY_PAGE_SIZE", defaults.history_page_size)),
            order_service_url=env.get("ORDER_SERVICE_URL") or None,
            cart_storage_path=env.get("CART_STORAGE_PATH") or None,
        )
