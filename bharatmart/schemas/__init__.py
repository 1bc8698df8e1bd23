from .cart import CART_STORAGE_KEY, CartLineItem, coerce_quantity
from .location import AUTO_PROMPTED_KEY, LOCATION_STORAGE_KEY, LocationRecord

__all__ = [
    "CART_STORAGE_KEY",
    "CartLineItem",
    "coerce_quantity",
    "AUTO_PROMPTED_KEY",
    "LOCATION_STORAGE_KEY",
    "LocationRecord",
]
