"""Checkout Orchestrator: turns a cart into a paid, recorded order.

Flow:
    1. IDLE → VALIDATING: cart, address, email and card checks, no network
    2a. Card: stock check → create intent → confirm card → create order (CARD_FLOW)
    2b. Bank transfer / cash on delivery: create order (DIRECT_FLOW)
    3. SUCCEEDED: cart cleared, receipt returned
       FAILED: nothing recorded, cart and form untouched
       SUCCEEDED_UNRECONCILED: card charged but the order was not recorded

The cart, pricing, address, method and card are captured in a
``CheckoutSnapshot`` before the first network call. Later cart edits do not
affect an attempt that is already running.

Only one attempt runs at a time. A second ``submit`` with the same snapshot
waits on the running attempt and gets its outcome; a different snapshot is
refused with ``CheckoutInProgress``.
"""

import asyncio
import json
import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

import structlog
from pydantic import ValidationError
from shared.orders import PaymentAttempt, PaymentMethod, PlacedOrder, PlaceOrderRequest, ShippingAddress

from payments.gateway import (
    MAX_METADATA_KEYS,
    MAX_METADATA_VALUE_LENGTH,
    SUCCEEDED,
    BillingDetails,
    CardDetails,
    PaymentGateway,
)
from storefront.cart.line import CartLine
from storefront.cart.store import CartStore
from storefront.checkout.errors import (
    CardDeclined,
    CheckoutError,
    CheckoutInProgress,
    CheckoutValidationError,
    GatewayError,
    InsufficientStock,
    IntentCreationFailed,
    OrderCreationFailed,
    UnreconciledPayment,
)
from storefront.orders.port import OrderService
from storefront.pricing import PricingSnapshot, ShippingPolicy, price, to_minor_units
from storefront.receipt import Receipt
from storefront.settings import CheckoutSettings

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# In the order the checkout form shows them
REQUIRED_ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "street_address",
    "city",
    "zip_code",
    "phone",
    "email",
)


class CheckoutState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CARD_FLOW = "card_flow"
    DIRECT_FLOW = "direct_flow"
    SUCCEEDED = "succeeded"
    SUCCEEDED_UNRECONCILED = "succeeded_unreconciled"
    FAILED = "failed"


@dataclass(frozen=True)
class CheckoutSnapshot:
    lines: tuple[CartLine, ...]
    pricing: PricingSnapshot
    address: ShippingAddress
    method: PaymentMethod
    card: CardDetails | None = None


@dataclass(frozen=True)
class CheckoutOutcome:
    state: CheckoutState
    attempt_id: str
    receipt: Receipt | None = None
    error: CheckoutError | None = None
    abandoned: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state is CheckoutState.SUCCEEDED


@dataclass
class _Attempt:
    attempt_id: str
    snapshot: CheckoutSnapshot
    task: asyncio.Task | None = None
    captured_reference: str | None = None
    unreconciled: UnreconciledPayment | None = field(default=None, repr=False)


class CheckoutOrchestrator:
    """Runs checkout attempts for one customer's cart.

    Args:
        cart: The customer's Cart Store.
        gateway: Card payment gateway.
        order_service: Where orders are recorded.
        auth_token: Bearer token of the signed-in customer.
        settings: Currency, shipping and billing-country settings.
        on_unreconciled: Called with ``UnreconciledPayment`` whenever a
            charge could not be matched to an order.
        clock: Returns epoch seconds; used for direct-payment references.
    """

    def __init__(
        self,
        cart: CartStore,
        gateway: PaymentGateway,
        order_service: OrderService,
        auth_token: str,
        settings: CheckoutSettings | None = None,
        on_unreconciled: Callable[[UnreconciledPayment], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cart = cart
        self.gateway = gateway
        self.order_service = order_service
        self.auth_token = auth_token
        self.settings = settings or CheckoutSettings()
        self.shipping_policy = ShippingPolicy.from_settings(self.settings)
        self.on_unreconciled = on_unreconciled
        self.clock = clock
        self.state = CheckoutState.IDLE
        self._inflight: _Attempt | None = None

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    @property
    def can_submit(self) -> bool:
        return self._inflight is None

    async def submit(self, address, method, card: CardDetails | None = None) -> CheckoutOutcome:
        """Run a checkout attempt and return its outcome.

        Validation failures come back as an outcome in ``IDLE`` carrying a
        ``CheckoutValidationError``; gateway and order failures as ``FAILED``
        or ``SUCCEEDED_UNRECONCILED`` outcomes.

        Raises:
            CheckoutInProgress: if a different attempt is still running.
        """
        method = PaymentMethod(method)

        if self._inflight is not None:
            return await self._join(address, method, card)

        attempt_id = uuid4().hex
        log = logger.bind(attempt_id=attempt_id, payment_method=method.value)

        self.state = CheckoutState.VALIDATING
        try:
            snapshot = self._capture(address, method, card)
        except CheckoutValidationError as exc:
            self.state = CheckoutState.IDLE
            log.info(
                "Checkout validation failed",
                missing_fields=exc.missing_fields,
                invalid_fields=exc.invalid_fields,
            )
            return CheckoutOutcome(state=CheckoutState.IDLE, attempt_id=attempt_id, error=exc)

        attempt = _Attempt(attempt_id=attempt_id, snapshot=snapshot)
        attempt.task = asyncio.ensure_future(self._run(attempt, log))
        attempt.task.add_done_callback(lambda _task: self._release(attempt))
        self._inflight = attempt
        log.info("Checkout started", total=snapshot.pricing.total, line_count=len(snapshot.lines))
        return await self._await(attempt)

    def abandon(self) -> bool:
        """Cancel the running attempt, if any. The cart is left as it is.

        Returns True if an attempt was cancelled.
        """
        attempt = self._inflight
        if attempt is None or attempt.task is None or attempt.task.done():
            return False
        attempt.task.cancel()
        return True

    # -------------------------------------------------------------------
    # Single-flight
    # -------------------------------------------------------------------
    async def _join(self, address, method: PaymentMethod, card: CardDetails | None) -> CheckoutOutcome:
        attempt = self._inflight
        try:
            candidate = self._capture(address, method, card)
        except CheckoutValidationError as exc:
            raise CheckoutInProgress() from exc
        if candidate != attempt.snapshot:
            raise CheckoutInProgress()
        logger.info("Joined in-flight checkout", attempt_id=attempt.attempt_id)
        return await self._await(attempt)

    async def _await(self, attempt: _Attempt) -> CheckoutOutcome:
        try:
            return await asyncio.shield(attempt.task)
        except asyncio.CancelledError:
            if not attempt.task.cancelled():
                # The caller was cancelled, not the attempt
                raise
            self.state = CheckoutState.IDLE
            return CheckoutOutcome(
                state=CheckoutState.IDLE,
                attempt_id=attempt.attempt_id,
                error=attempt.unreconciled,
                abandoned=True,
            )

    def _release(self, attempt: _Attempt) -> None:
        if self._inflight is attempt:
            self._inflight = None

    # -------------------------------------------------------------------
    # Validation and snapshot
    # -------------------------------------------------------------------
    def _capture(self, address, method: PaymentMethod, card: CardDetails | None) -> CheckoutSnapshot:
        lines = self.cart.lines
        fields = address.model_dump() if isinstance(address, ShippingAddress) else dict(address or {})

        missing = []
        if not lines:
            missing.append("cart")
        missing.extend(name for name in REQUIRED_ADDRESS_FIELDS if not str(fields.get(name) or "").strip())
        invalid = []
        email = str(fields.get("email") or "").strip()
        if email and not EMAIL_PATTERN.match(email):
            invalid.append("email")
        if method is PaymentMethod.CARD and (card is None or not card.token):
            missing.append("card")

        if missing or invalid:
            raise CheckoutValidationError(missing_fields=missing, invalid_fields=invalid)

        try:
            shipping_address = ShippingAddress.model_validate(_without_blanks(fields))
        except ValidationError as exc:
            invalid_fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            raise CheckoutValidationError(invalid_fields=invalid_fields) from exc

        return CheckoutSnapshot(
            lines=lines,
            pricing=price(lines, self.shipping_policy),
            address=shipping_address,
            method=method,
            card=card if method is PaymentMethod.CARD else None,
        )

    # -------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------
    async def _run(self, attempt: _Attempt, log) -> CheckoutOutcome:
        try:
            match attempt.snapshot.method:
                case PaymentMethod.CARD:
                    return await self._card_flow(attempt, log)
                case PaymentMethod.BANK_TRANSFER | PaymentMethod.CASH_ON_DELIVERY:
                    return await self._direct_flow(attempt, log)
        except asyncio.CancelledError:
            self.state = CheckoutState.IDLE
            if attempt.captured_reference:
                attempt.unreconciled = self._report_unreconciled(
                    attempt, log, cause="Checkout abandoned after the card was charged"
                )
            else:
                log.info("Checkout abandoned")
            raise

    async def _card_flow(self, attempt: _Attempt, log) -> CheckoutOutcome:
        snapshot = attempt.snapshot
        self.state = CheckoutState.CARD_FLOW

        # Nothing is charged for a cart the Order Service cannot fill
        try:
            shortages = await self.order_service.check_stock(
                self.auth_token, [line.to_order_line() for line in snapshot.lines]
            )
        except Exception as exc:
            log.warning("Stock check failed", error=str(exc))
            return self._fail(attempt, log, IntentCreationFailed(f"Could not start the payment: {exc}"))
        if shortages:
            return self._fail(attempt, log, InsufficientStock(shortages))

        try:
            intent = await self.gateway.create_intent(
                to_minor_units(snapshot.pricing.total),
                self.settings.currency,
                self._intent_metadata(snapshot),
                idempotency_key=attempt.attempt_id,
            )
        except Exception as exc:
            log.exception("Payment intent request raised")
            return self._fail(attempt, log, IntentCreationFailed(f"Could not start the payment: {exc}"))
        if not intent.success:
            return self._fail(attempt, log, IntentCreationFailed(intent.failure_reason or "Could not start the payment"))

        try:
            confirmation = await self.gateway.confirm(intent.client_secret, snapshot.card, self._billing(snapshot))
        except Exception as exc:
            log.exception("Payment confirmation raised")
            return self._fail(attempt, log, GatewayError(f"Payment could not be confirmed: {exc}"))
        if confirmation.declined:
            return self._fail(attempt, log, CardDeclined(confirmation.failure_reason or "Your card was declined"))
        if not confirmation.success:
            return self._fail(attempt, log, GatewayError(confirmation.failure_reason or "Payment could not be confirmed"))
        if confirmation.status != SUCCEEDED:
            return self._fail(attempt, log, GatewayError(f"Payment was not completed (status: {confirmation.status})"))

        payment = PaymentAttempt(
            method=PaymentMethod.CARD,
            gateway_reference=confirmation.gateway_reference or intent.intent_id,
        )
        attempt.captured_reference = payment.gateway_reference
        log.info("Card payment captured", gateway_reference=payment.gateway_reference)

        request = self._order_request(snapshot, payment)
        try:
            placed = await self.order_service.create_order(self.auth_token, request)
        except Exception as exc:
            attempt.unreconciled = self._report_unreconciled(attempt, log, cause=str(exc))
            self.state = CheckoutState.SUCCEEDED_UNRECONCILED
            return CheckoutOutcome(
                state=CheckoutState.SUCCEEDED_UNRECONCILED,
                attempt_id=attempt.attempt_id,
                error=attempt.unreconciled,
            )
        return self._succeed(attempt, log, request, placed)

    async def _direct_flow(self, attempt: _Attempt, log) -> CheckoutOutcome:
        snapshot = attempt.snapshot
        self.state = CheckoutState.DIRECT_FLOW

        payment = PaymentAttempt.synthesized(snapshot.method, self.clock())
        request = self._order_request(snapshot, payment)
        try:
            placed = await self.order_service.create_order(self.auth_token, request)
        except Exception as exc:
            log.warning("Order creation failed", payment_reference=payment.gateway_reference, error=str(exc))
            return self._fail(attempt, log, OrderCreationFailed(f"We could not place your order: {exc}"))
        return self._succeed(attempt, log, request, placed)

    # -------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------
    def _succeed(self, attempt: _Attempt, log, request: PlaceOrderRequest, placed: PlacedOrder) -> CheckoutOutcome:
        self.cart.clear()
        self.state = CheckoutState.SUCCEEDED
        log.info(
            "Checkout succeeded",
            order_id=placed.order_id,
            order_number=placed.order_number,
            payment_reference=request.payment_reference,
        )
        receipt = Receipt(
            order_number=placed.order_number,
            order_id=placed.order_id,
            amount=request.total,
            items=tuple(request.items),
            payment_method=request.payment_method,
            payment_reference=request.payment_reference,
            created_at=placed.created_at,
        )
        return CheckoutOutcome(state=CheckoutState.SUCCEEDED, attempt_id=attempt.attempt_id, receipt=receipt)

    def _fail(self, attempt: _Attempt, log, error: CheckoutError) -> CheckoutOutcome:
        self.state = CheckoutState.FAILED
        log.warning("Checkout failed", code=error.code, reason=error.reason)
        return CheckoutOutcome(state=CheckoutState.FAILED, attempt_id=attempt.attempt_id, error=error)

    def _report_unreconciled(self, attempt: _Attempt, log, cause: str) -> UnreconciledPayment:
        error = UnreconciledPayment(
            gateway_reference=attempt.captured_reference,
            amount=attempt.snapshot.pricing.total,
            cause=cause,
        )
        log.error(
            "Payment captured but order not recorded",
            gateway_reference=error.gateway_reference,
            amount=error.amount,
            cause=cause,
        )
        if self.on_unreconciled is not None:
            try:
                self.on_unreconciled(error)
            except Exception:
                log.exception("Unreconciled payment reporter failed", gateway_reference=error.gateway_reference)
        return error

    # -------------------------------------------------------------------
    # Payloads
    # -------------------------------------------------------------------
    def _intent_metadata(self, snapshot: CheckoutSnapshot) -> dict[str, str]:
        """The order draft as gateway metadata.

        Items are spread over ``items_0``, ``items_1``, ... so that every value
        stays a JSON array within the gateway's value length. When the detailed
        entries need more keys than remain, names are dropped.
        """
        address = snapshot.address
        metadata = {
            key: _clip(value)
            for key, value in {
                "email": address.email,
                "total": f"{snapshot.pricing.total:.2f}",
                "item_count": str(len(snapshot.lines)),
                "ship_name": address.full_name,
                "ship_line1": address.street_address,
                "ship_city": address.city,
                "ship_province": address.province,
                "ship_postal_code": address.zip_code,
                "ship_country": address.country,
                "ship_phone": address.phone,
            }.items()
        }
        free_keys = MAX_METADATA_KEYS - len(metadata)

        chunks = _json_chunks(
            [
                {"id": _clip(line.product_id, 100), "name": _clip(line.name, 100), "quantity": line.quantity}
                for line in snapshot.lines
            ]
        )
        if len(chunks) > free_keys:
            chunks = _json_chunks(
                [{"id": _clip(line.product_id, 100), "quantity": line.quantity} for line in snapshot.lines]
            )
        if len(chunks) > free_keys:
            logger.warning("Intent metadata truncated", item_count=len(snapshot.lines), chunks=len(chunks))
            chunks = chunks[:free_keys]

        metadata.update({f"items_{index}": chunk for index, chunk in enumerate(chunks)})
        return metadata

    def _billing(self, snapshot: CheckoutSnapshot) -> BillingDetails:
        address = snapshot.address
        return BillingDetails(
            name=address.full_name,
            email=address.email,
            phone=address.phone,
            line1=address.street_address,
            city=address.city,
            postal_code=address.zip_code,
            country=self.settings.billing_country_code,
        )

    def _order_request(self, snapshot: CheckoutSnapshot, payment: PaymentAttempt) -> PlaceOrderRequest:
        return PlaceOrderRequest(
            items=[line.to_order_line() for line in snapshot.lines],
            shipping_address=snapshot.address,
            payment_reference=payment.gateway_reference,
            payment_method=payment.method,
            subtotal=snapshot.pricing.subtotal,
            shipping_cost=snapshot.pricing.shipping_cost,
            total=snapshot.pricing.total,
        )


def _clip(value: str, limit: int = MAX_METADATA_VALUE_LENGTH) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "..."


def _json_chunks(entries: list[dict]) -> list[str]:
    """Pack entries into JSON arrays no longer than the metadata value limit."""

    def dumps(value) -> str:
        return json.dumps(value, ensure_ascii=False)

    chunks: list[str] = []
    current: list[dict] = []
    for entry in entries:
        if current and len(dumps(current + [entry])) > MAX_METADATA_VALUE_LENGTH:
            chunks.append(dumps(current))
            current = []
        current.append(entry)
    if current:
        chunks.append(dumps(current))
    return chunks


def _without_blanks(fields: Mapping) -> dict:
    """Drop blank optional values so model defaults (country, province) apply."""
    return {name: value for name, value in fields.items() if not (isinstance(value, str) and not value.strip())}
