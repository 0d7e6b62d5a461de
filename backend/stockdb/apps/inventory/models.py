from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("sku", name="uq_inventory_item_sku"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(64), nullable=False)
    unit = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    stocks = relationship("InventoryStock", back_populates="item", cascade="all, delete-orphan")


class InventoryStock(Base):
    """Quantity of one item at one location.

    `created_at` is the FIFO key used when stock is reserved.
    """

    __tablename__ = "inventory_stock"
    __table_args__ = (
        UniqueConstraint("item_id", "location", name="uq_inventory_stock_item_location"),
        CheckConstraint("quantity >= 0", name="ck_inventory_stock_quantity_non_negative"),
        Index("ix_inventory_stock_item_created", "item_id", "created_at", "id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    location = Column(String(64), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    item = relationship("InventoryItem", back_populates="stocks")
