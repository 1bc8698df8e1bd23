import json
import logging
import threading
from decimal import Decimal
from typing import Callable, List, Mapping, Optional, Union

from pydantic import ValidationError

from bharatmart.schemas.cart import CART_STORAGE_KEY, CartLineItem, coerce_quantity

logger = logging.getLogger(__name__)

Subscriber = Callable[[List[CartLineItem]], None]


def _read_items(storage, key: str) -> List[CartLineItem]:
    """Load persisted line items; anything unusable yields an empty cart."""
    try:
        raw = storage.get_item(key)
    except Exception:
        logger.warning("Cart storage read failed", exc_info=True)
        return []
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding malformed cart payload")
        return []
    if not isinstance(parsed, list):
        logger.warning("Discarding cart payload that is not a list")
        return []

    items: List[CartLineItem] = []
    positions = {}
    for entry in parsed:
        try:
            item = CartLineItem.model_validate(entry)
        except ValidationError as ve:
            logger.warning("Dropping invalid cart entry: %s", ve.errors())
            continue
        # Older payloads may hold the same product twice
        if item.product_id in positions:
            idx = positions[item.product_id]
            items[idx] = items[idx].model_copy(
                update={"quantity": items[idx].quantity + item.quantity}
            )
        else:
            positions[item.product_id] = len(items)
            items.append(item)
    return items


class CartStore:
    """The buyer's cart: line items unique by product id, kept in storage.

    Every mutation runs under one lock, persists the full cart and then
    notifies subscribers with the new snapshot. Totals are computed on
    read, never cached.
    """

    def __init__(self, storage, key: str = CART_STORAGE_KEY, items=None):
        self._storage = storage
        self._key = key
        self._items: List[CartLineItem] = list(items or [])
        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []

    @classmethod
    def load(cls, storage, key: str = CART_STORAGE_KEY) -> "CartStore":
        return cls(storage, key, items=_read_items(storage, key))

    # ------------------------------------------------------------------ reads

    @property
    def items(self) -> List[CartLineItem]:
        with self._lock:
            return list(self._items)

    @property
    def total_quantity(self) -> int:
        with self._lock:
            return sum(i.quantity for i in self._items)

    @property
    def total_amount(self) -> Decimal:
        with self._lock:
            return sum((i.subtotal for i in self._items), Decimal("0"))

    def get(self, product_id: str) -> Optional[CartLineItem]:
        with self._lock:
            return next((i for i in self._items if i.product_id == product_id), None)

    def __len__(self) -> int:
        return len(self._items)

    # -------------------------------------------------------------- mutations

    def add_item(
        self,
        item: Union[CartLineItem, Mapping],
        quantity=None,
    ) -> CartLineItem:
        """Add ``quantity`` (default 1) of a product, merging with an existing line.

        ``item`` is a line item or a mapping in either field or storage
        naming. A ``qty`` carried by the mapping is used when
        ``quantity`` is not given.
        """
        line = self._to_line(item, quantity)
        with self._lock:
            for idx, existing in enumerate(self._items):
                if existing.product_id == line.product_id:
                    merged = existing.model_copy(
                        update={"quantity": existing.quantity + line.quantity}
                    )
                    self._items[idx] = merged
                    break
            else:
                merged = line
                self._items.append(line)
            snapshot = self._commit()
        self._notify(snapshot)
        return merged

    def update_quantity(self, product_id: str, quantity) -> None:
        """Replace a line's quantity; zero or junk becomes 1, never a removal."""
        safe_qty = coerce_quantity(quantity)
        with self._lock:
            for idx, existing in enumerate(self._items):
                if existing.product_id == product_id:
                    self._items[idx] = existing.model_copy(update={"quantity": safe_qty})
                    break
            else:
                return
            snapshot = self._commit()
        self._notify(snapshot)

    def remove_item(self, product_id: str) -> None:
        with self._lock:
            remaining = [i for i in self._items if i.product_id != product_id]
            if len(remaining) == len(self._items):
                return
            self._items = remaining
            snapshot = self._commit()
        self._notify(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._items = []
            snapshot = self._commit()
        self._notify(snapshot)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(items)`` after every mutation; returns an unsubscribe."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _to_line(item, quantity) -> CartLineItem:
        if isinstance(item, CartLineItem):
            if quantity is None:
                return item
            return item.model_copy(update={"quantity": coerce_quantity(quantity)})
        data = dict(item)
        if quantity is not None:
            data.pop("quantity", None)
            data["qty"] = quantity
        return CartLineItem.model_validate(data)

    def _commit(self) -> List[CartLineItem]:
        snapshot = list(self._items)
        payload = json.dumps([i.to_storage() for i in snapshot], ensure_ascii=False)
        try:
            self._storage.set_item(self._key, payload)
        except Exception:
            logger.error("Failed to persist cart", exc_info=True)
        return snapshot

    def _notify(self, snapshot: List[CartLineItem]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Cart subscriber failed")
