"""Cart Store: the single source of truth for the customer's cart.

Every mutation validates, updates the in-memory lines, writes the full list
to the storage slot and then notifies subscribers, all before returning.
Subscribers are called synchronously; one that raises is logged and skipped.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from storefront.cart.line import MAX_LINE_QUANTITY, CartLine, CartLineKey
from storefront.cart.storage import CART_SLOT, CartStorage, InMemoryCartStorage, JsonFileCartStorage
from storefront.checkout.errors import CartLineNotFound, InvalidQuantity, QuantityExceeded

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartChanged:
    """Notification broadcast after every cart mutation."""

    kind: str
    lines: tuple[CartLine, ...]
    item_count: int


Listener = Callable[[CartChanged], None]


class CartStore:
    def __init__(self, storage: CartStorage | None = None, slot: str = CART_SLOT) -> None:
        self.storage = storage or InMemoryCartStorage()
        self.slot = slot
        self._listeners: list[Listener] = []
        self._lines: list[CartLine] = self._read()

    @classmethod
    def from_settings(cls, settings) -> "CartStore":
        """File-backed store when a cart storage path is configured, in-memory otherwise."""
        if settings.cart_storage_path:
            return cls(JsonFileCartStorage(settings.cart_storage_path))
        return cls()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get(self, key: CartLineKey) -> CartLine | None:
        index = self._index_of(key)
        return None if index is None else self._lines[index]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_or_merge(self, line: CartLine) -> CartLine:
        """Add a line, or add its quantity to the line with the same key.

        The combined quantity is capped at five. When the cap applies the
        capped line is still stored and broadcast before ``QuantityExceeded``
        is raised.
        """
        return self._merge(line, line.quantity)

    def add(self, product_id, name, unit_price, quantity=1, size=None, color=None, image=None) -> CartLine:
        """Build a line from product fields and merge it into the cart.

        Unlike ``add_or_merge`` this accepts a quantity above five, which is
        capped the same way a merge is.

        Raises:
            InvalidQuantity: if ``quantity`` is below one.
            QuantityExceeded: if the line had to be capped (cart updated).
        """
        if quantity < 1:
            raise InvalidQuantity(quantity)
        line = CartLine(
            product_id=str(product_id),
            name=name,
            unit_price=unit_price,
            size=size,
            color=color,
            quantity=min(quantity, MAX_LINE_QUANTITY),
            image=image,
        )
        return self._merge(line, quantity)

    def set_quantity(self, key: CartLineKey, quantity: int) -> CartLine:
        if quantity < 1 or quantity > MAX_LINE_QUANTITY:
            raise InvalidQuantity(quantity)
        index = self._index_of(key)
        if index is None:
            raise CartLineNotFound(key)
        updated = self._lines[index].with_quantity(quantity)
        self._lines[index] = updated
        self._commit("quantity_set")
        return updated

    def remove(self, key: CartLineKey) -> None:
        """Remove a line. Removing a line that is not in the cart is a no-op."""
        index = self._index_of(key)
        if index is None:
            return
        del self._lines[index]
        self._commit("removed")

    def clear(self) -> None:
        self._lines = []
        self._commit("cleared")

    def reload(self) -> None:
        """Re-read the slot after it was changed outside this store."""
        self._lines = self._read()
        self._broadcast("reloaded")

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _index_of(self, key: CartLineKey) -> int | None:
        key = CartLineKey(*key)
        for index, line in enumerate(self._lines):
            if line.key == key:
                return index
        return None

    def _merge(self, line: CartLine, quantity: int) -> CartLine:
        index = self._index_of(line.key)
        existing = 0 if index is None else self._lines[index].quantity
        requested = existing + quantity
        accepted = min(requested, MAX_LINE_QUANTITY)

        merged = line.with_quantity(accepted)
        if index is None:
            self._lines.append(merged)
        else:
            self._lines[index] = merged
        self._commit("added")

        if accepted < requested:
            logger.info(
                "Cart line capped",
                product_id=line.product_id,
                requested=requested,
                accepted=accepted,
            )
            raise QuantityExceeded(line.key, requested=requested, accepted=accepted)
        return merged

    def _read(self) -> list[CartLine]:
        lines = []
        for item in self.storage.load(self.slot) or []:
            try:
                lines.append(CartLine.model_validate(item))
            except ValidationError as exc:
                logger.warning("Dropping invalid cart line", item=item, errors=exc.error_count())
        return lines

    def _commit(self, kind: str) -> None:
        self.storage.save(self.slot, [line.model_dump() for line in self._lines])
        self._broadcast(kind)

    def _broadcast(self, kind: str) -> None:
        event = CartChanged(kind=kind, lines=self.lines, item_count=self.item_count)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Cart listener failed", kind=kind)
