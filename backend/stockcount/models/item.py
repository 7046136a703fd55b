from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockcount.db.base import Base

UNIT_QUANTITY = "quantity"
UNIT_WEIGHT = "weight"
UNIT_TYPES = (UNIT_QUANTITY, UNIT_WEIGHT)


class Item(Base):
    """
    Master item: a reusable product definition owned by one user.

    average_weight_per_unit is None for quantity items and positive for weight items.
    """
    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("user_id", "upc_number", name="uq_item_user_upc"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    upc_number = Column(String(64), nullable=True)
    unit_type = Column(String(16), nullable=False, default=UNIT_QUANTITY)  # quantity | weight
    average_weight_per_unit = Column(Float, nullable=True)
    item_type = Column(String(128), nullable=True)  # category
    brand = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="items")
    inventory_items = relationship("InventoryItem", back_populates="item", passive_deletes="all")
