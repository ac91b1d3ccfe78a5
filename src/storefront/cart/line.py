"""Cart lines.

A line is one product in one size and color. Two additions of the same
product with the same size and color merge into a single line; a different
size or color is a separate line.
"""

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from shared.orders import OrderLine

MAX_LINE_QUANTITY = 5


class CartLineKey(NamedTuple):
    product_id: str
    size: str | None = None
    color: str | None = None


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    size: str | None = None
    color: str | None = None
    quantity: int = Field(ge=1, le=MAX_LINE_QUANTITY)
    image: str | None = None

    @property
    def key(self) -> CartLineKey:
        return CartLineKey(self.product_id, self.size, self.color)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "CartLine":
        """Copy of the line with another quantity, validated against the bounds."""
        return CartLine(**{**self.model_dump(), "quantity": quantity})

    def to_order_line(self) -> OrderLine:
        return OrderLine(**self.model_dump())
