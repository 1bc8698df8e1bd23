import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote

from bharatmart.schemas.cart import CartLineItem
from bharatmart.schemas.location import LocationRecord
from bharatmart.services.location import format_full_address
from bharatmart.utils.money import format_money, format_timestamp
from bharatmart.utils.phone import whatsapp_digits

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class CheckoutSettings:
    store_name: str = "BharatMart"
    whatsapp_number: str = "9983944688"
    messaging_host: str = "wa.me"
    locale: str = "en_IN"
    currency_symbol: str = "₹"

    @classmethod
    def from_config(cls, config) -> "CheckoutSettings":
        return cls(
            store_name=config.STORE_NAME,
            whatsapp_number=config.CHECKOUT_WHATSAPP_NUMBER,
            messaging_host=config.MESSAGING_HOST,
            locale=config.MONEY_LOCALE,
            currency_symbol=config.CURRENCY_SYMBOL,
        )


def build_checkout_message(
    items: Sequence[CartLineItem],
    location: Optional[LocationRecord],
    now: datetime,
    settings: Optional[CheckoutSettings] = None,
) -> str:
    """Render the WhatsApp order text.

    The person receiving the order reconciles it by hand, so line order
    and punctuation are fixed.
    """
    settings = settings or CheckoutSettings()

    def money(amount):
        return f"{settings.currency_symbol}{format_money(amount, settings.locale)}"

    lines: List[str] = [
        f"{settings.store_name} - Cart Checkout",
        f"Delivery Address:\n{format_full_address(location)}",
    ]
    instructions = (location.delivery_instructions or "").strip() if location else ""
    if instructions:
        lines.append(f"Delivery Instructions: {instructions}")
    if location:
        lines.append(f"Default Address: {'Yes' if location.is_default_address else 'No'}")
    lines.append(f"Time: {format_timestamp(now, settings.locale)}")
    lines.append("")
    lines.append("Items:")

    total_qty = 0
    total = Decimal("0")
    for idx, item in enumerate(items, start=1):
        subtotal = item.subtotal
        total += subtotal
        total_qty += item.quantity
        lines.append(
            f"{idx}. {item.title} | Qty: {item.quantity} | {money(item.price)} | Subtotal: {money(subtotal)}"
        )
        lines.append(f"   Product: /product/{item.product_id}")
        if item.seller_id:
            lines.append(f"   SellerId: {item.seller_id}")

    lines.append("")
    lines.append(f"Total Items: {format_money(total_qty, settings.locale)}")
    lines.append(f"Total Amount: {money(total)}")
    return "\n".join(lines)


def whatsapp_url(message: str, settings: Optional[CheckoutSettings] = None) -> str:
    settings = settings or CheckoutSettings()
    number = whatsapp_digits(settings.whatsapp_number)
    return f"https://{settings.messaging_host}/{number}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def build_whatsapp_checkout_url(
    items: Sequence[CartLineItem],
    location: Optional[LocationRecord],
    now: datetime,
    settings: Optional[CheckoutSettings] = None,
) -> str:
    return whatsapp_url(build_checkout_message(items, location, now, settings), settings)


def build_order_payload(user_id: str, items, location) -> dict:
    """Order record in plain JSON types, ready for the task queue."""
    return {
        "user_id": user_id,
        "items": [i.to_storage() for i in items],
        "total_qty": sum(i.quantity for i in items),
        "total_amount": str(sum((i.subtotal for i in items), Decimal("0"))),
        "delivery_address": location.to_storage() if location else None,
    }


@dataclass
class CheckoutResult:
    url: str
    message: str
    order_submitted: bool = False


class CeleryOrderWriter:
    """Hands order records to the ``record_order_task`` queue."""

    def __init__(self, database_url: str):
        self.database_url = database_url

    def submit(self, payload: dict):
        from bharatmart.tasks.orders import record_order_task

        return record_order_task.delay(self.database_url, payload)


class CheckoutService:
    """Turns the current cart and location into a WhatsApp deep link.

    The order record is a side write: when it fails the checkout still
    produces its link.
    """

    def __init__(
        self,
        cart,
        locations,
        settings: Optional[CheckoutSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
        order_writer=None,
    ):
        self.cart = cart
        self.locations = locations
        self.settings = settings or CheckoutSettings()
        self.clock = clock
        self.order_writer = order_writer

    def preview(self) -> str:
        return build_checkout_message(
            self.cart.items, self.locations.load(), self.clock(), self.settings
        )

    def checkout(self, user_id: Optional[str] = None) -> CheckoutResult:
        items = self.cart.items
        location = self.locations.load()
        submitted = False
        if user_id and items and self.order_writer is not None:
            try:
                self.order_writer.submit(build_order_payload(user_id, items, location))
                submitted = True
            except Exception:
                logger.exception("Order record failed, continuing with WhatsApp checkout")

        message = build_checkout_message(items, location, self.clock(), self.settings)
        logger.info({
            "event": "whatsapp_checkout",
            "phone": self.settings.whatsapp_number,
            "items": len(items),
            "order_submitted": submitted,
        })
        return CheckoutResult(
            url=whatsapp_url(message, self.settings),
            message=message,
            order_submitted=submitted,
        )
