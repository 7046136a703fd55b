"""
Ownership checks shared by the route handlers.

A row owned by someone else is reported exactly like a missing row (404),
and the attempt is written to the audit log.
"""
from sqlalchemy.orm import Session, joinedload

from stockcount.core.audit import AuditLog
from stockcount.core.exceptions import ApiError
from stockcount.models.inventory import Inventory, InventoryItem
from stockcount.models.item import Item
from stockcount.models.user import User


def get_owned_inventory(db: Session, inventory_id: int, user: User, action: str = "read") -> Inventory:
    inventory = db.query(Inventory).filter(Inventory.id == inventory_id).first()
    if not inventory:
        raise ApiError.not_found("Inventory")
    if inventory.user_id != user.id:
        AuditLog.log_access_denied(action, "inventory", inventory_id, user.id, "Not inventory owner")
        raise ApiError.not_found("Inventory", reason=f"user {user.id} is not owner of inventory {inventory_id}")
    return inventory


def get_owned_inventory_item(
    db: Session,
    inventory: Inventory,
    inventory_item_id: int,
) -> InventoryItem:
    """Row of an inventory the caller already owns; rows of other inventories are not found."""
    row = (
        db.query(InventoryItem)
        .options(joinedload(InventoryItem.item))
        .filter(InventoryItem.id == inventory_item_id, InventoryItem.inventory_id == inventory.id)
        .first()
    )
    if not row:
        raise ApiError.not_found("Inventory item")
    return row


def get_accessible_item(db: Session, item_id: int, user: User, action: str = "read") -> Item:
    """Master item owned by the caller. Admins may reach any user's items."""
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise ApiError.not_found("Item")
    if item.user_id != user.id and not user.is_admin:
        AuditLog.log_access_denied(action, "item", item_id, user.id, "Not item owner")
        raise ApiError.not_found("Item", reason=f"user {user.id} is not owner of item {item_id}")
    return item


def ensure_admin(user: User, action: str = "admin") -> User:
    if not user.is_admin:
        AuditLog.log_access_denied(action, "admin", None, user.id, f"Role {user.role.value} is not ADMIN")
        raise ApiError.forbidden(f"user {user.id} is not an admin")
    return user
