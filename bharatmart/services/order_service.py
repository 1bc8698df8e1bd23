from decimal import Decimal, ROUND_HALF_UP

from models.order import Order
from bharatmart.utils.db import transactional

TWOPLACES = Decimal("0.01")


class ValidationError(Exception):
    pass


def _to_money(value):
    d = Decimal(str(value))
    return d.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def create_order_record(sessions, payload: dict) -> int:
    """Insert a ``placed`` order from a checkout payload; returns its id."""
    if not payload.get("user_id"):
        raise ValidationError("user_id is required")
    items = payload.get("items") or []
    if not items:
        raise ValidationError("Cart is empty")

    with sessions() as session:
        with transactional(session, "Failed to record order"):
            order = Order(
                user_id=payload["user_id"],
                status="placed",
                items=items,
                total_qty=int(payload.get("total_qty") or 0),
                total_amount=_to_money(payload.get("total_amount") or 0),
                delivery_address=payload.get("delivery_address"),
            )
            session.add(order)
            session.flush()
            order_id = order.id
    return order_id


def orders_for_user(sessions, user_id: str):
    with sessions() as session:
        return (
            session.query(Order)
            .filter_by(user_id=user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )
