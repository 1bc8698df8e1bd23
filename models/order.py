from sqlalchemy import Column, String, Integer, Numeric, DateTime, JSON
from sqlalchemy.sql import func
from models import Base, BIGINT

ORDER_STATUSES = ("placed", "processing", "shipped", "delivered", "cancelled")


class Order(Base):
    __tablename__ = "order"

    id = Column(BIGINT, primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    status = Column(String(20), default="placed")  # placed, processing, shipped, delivered, cancelled
    items = Column(JSON, nullable=False)  # line items in storage shape
    total_qty = Column(Integer, nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    delivery_address = Column(JSON, nullable=True)  # location snapshot, null when unset
    created_at = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "items": self.items,
            "total_qty": self.total_qty,
            "total_amount": float(self.total_amount),
            "delivery_address": self.delivery_address,
            "created_at": self.created_at,
        }
