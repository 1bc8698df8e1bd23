from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from models import Base


class StorageEntry(Base):
    """One key of the buyer's local key/value storage."""

    __tablename__ = "local_storage"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded blob
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
