import math
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

CART_STORAGE_KEY = "bharatmart:cart"


def coerce_quantity(value) -> int:
    """Floor a requested quantity to a whole number of at least 1.

    Anything non-numeric, non-finite, zero or negative becomes 1.
    """
    if isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return max(1, int(number))


class CartLineItem(BaseModel):
    """One product in the cart, with title and price snapshotted at add time.

    Field aliases match the payload the storefront has always persisted,
    so carts saved by earlier clients load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(alias="productId", min_length=1)
    title: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=1, alias="qty")
    image: Optional[str] = None
    seller_id: Optional[str] = Field(default=None, alias="sellerId")

    @field_validator("product_id", "seller_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def floor_quantity(cls, v):
        return coerce_quantity(v)

    @field_serializer("price")
    def price_as_number(self, price: Decimal):
        if price == price.to_integral_value():
            return int(price)
        return float(price)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
