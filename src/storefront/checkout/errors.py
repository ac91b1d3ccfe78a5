"""Checkout and cart errors.

Every checkout failure carries a human-readable ``reason`` for the customer
and a stable ``code`` for logs and tests. All of them except
``UnreconciledPayment`` leave the cart and the checkout form untouched.
"""


class CartError(Exception):
    """Base class for cart mutations that were refused or adjusted."""


class InvalidQuantity(CartError):
    def __init__(self, quantity: int) -> None:
        self.quantity = quantity
        super().__init__(f"Quantity must be between 1 and 5, got {quantity}")


class QuantityExceeded(CartError):
    """The line was capped at the maximum; the excess was not added.

    The cart has already been updated with the accepted quantity when this
    is raised.
    """

    def __init__(self, key, requested: int, accepted: int) -> None:
        self.key = key
        self.requested = requested
        self.accepted = accepted
        self.rejected = requested - accepted
        super().__init__(f"Only {accepted} of {requested} can be in the cart for {key.product_id}")


class CartLineNotFound(CartError, KeyError):
    def __init__(self, key) -> None:
        self.key = key
        super().__init__(key)


class CheckoutError(Exception):
    code = "checkout_error"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CheckoutValidationError(CheckoutError):
    code = "validation_failed"

    def __init__(self, missing_fields=(), invalid_fields=(), reason: str | None = None) -> None:
        self.missing_fields = list(missing_fields)
        self.invalid_fields = list(invalid_fields)
        if reason is None:
            parts = []
            if self.missing_fields:
                parts.append(f"Please fill in: {', '.join(self.missing_fields)}")
            if self.invalid_fields:
                parts.append(f"Please correct: {', '.join(self.invalid_fields)}")
            reason = ". ".join(parts) or "Checkout details are incomplete"
        super().__init__(reason)


class InsufficientStock(CheckoutError):
    code = "insufficient_stock"

    def __init__(self, shortages) -> None:
        self.shortages = list(shortages)
        super().__init__(". ".join(shortage.message for shortage in self.shortages))


class IntentCreationFailed(CheckoutError):
    code = "intent_creation_failed"


class CardDeclined(CheckoutError):
    code = "card_declined"


class GatewayError(CheckoutError):
    code = "gateway_error"


class OrderCreationFailed(CheckoutError):
    code = "order_creation_failed"


class UnreconciledPayment(CheckoutError):
    """The card was charged but no order was recorded.

    Terminal for the attempt and never retried automatically; support
    reconciles it using ``gateway_reference``.
    """

    code = "payment_unreconciled"

    def __init__(self, gateway_reference: str, amount: float, cause: str | None = None) -> None:
        self.gateway_reference = gateway_reference
        self.amount = amount
        self.cause = cause
        super().__init__(
            f"Payment received but we could not record your order. "
            f"Please contact support with reference {gateway_reference}."
        )


class CheckoutInProgress(CheckoutError):
    code = "checkout_in_progress"

    def __init__(self, reason: str = "A checkout is already in progress") -> None:
        super().__init__(reason)
