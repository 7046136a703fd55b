"""
Inventory counting sessions and their item rows.

Status flow: draft -> completed (one-way); draft/completed -> deleted (terminal).
"""
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from stockcount.db.base import Base

STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"
STATUS_DELETED = "deleted"
INVENTORY_STATUSES = (STATUS_DRAFT, STATUS_COMPLETED, STATUS_DELETED)


class Inventory(Base):
    __tablename__ = "inventories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default=STATUS_DRAFT)
    settings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="inventories")
    items = relationship(
        "InventoryItem",
        back_populates="inventory",
        cascade="all, delete-orphan",
    )


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("inventory_id", "item_id", name="uq_inventory_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventories.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    counted_units = Column(Float, nullable=False, default=0)
    calculated_weight = Column(Float, nullable=True)  # derived from counted_units for weight items
    is_entered = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    inventory = relationship("Inventory", back_populates="items")
    item = relationship("Item", back_populates="inventory_items")
