"""Inventory sessions and the items counted in them. Every route is scoped to the caller's own inventories."""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from stockcount.api.deps import get_current_user, get_db
from stockcount.core.audit import AuditLog
from stockcount.core.exceptions import ApiError, ConflictError
from stockcount.core.permissions import get_owned_inventory, get_owned_inventory_item
from stockcount.models.inventory import Inventory
from stockcount.models.item import Item
from stockcount.models.user import User
from stockcount.schemas.inventory import (
    BulkAddResponse,
    InventoryCreate,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryResponse,
    InventoryStatus,
    InventoryUpdate,
    MessageResponse,
)
from stockcount.services import inventory_service

router = APIRouter()

SortOption = Literal[
    "count", "name", "unit_type", "upc_number", "counted_units", "calculated_weight", "brand", "item_type"
]


# ==============================================================================
# INVENTORIES
# ==============================================================================

@router.get("", response_model=List[InventoryResponse])
def list_inventories(
    status_filter: Optional[InventoryStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Inventory).filter(Inventory.user_id == current_user.id)
    if status_filter:
        q = q.filter(Inventory.status == status_filter)
    return q.order_by(Inventory.created_at.desc(), Inventory.id.desc()).all()


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory(
    data: InventoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    inventory = Inventory(
        user_id=current_user.id,
        name=data.name,
        status=data.status,
        settings=data.settings,
    )
    db.add(inventory)
    db.commit()
    db.refresh(inventory)
    AuditLog.log_action("create", "inventory", inventory.id, current_user, changes={"name": inventory.name})
    return inventory


@router.get("/{inventory_id}", response_model=InventoryResponse)
def get_inventory(inventory_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_owned_inventory(db, inventory_id, current_user)


@router.patch("/{inventory_id}", response_model=InventoryResponse)
def update_inventory(
    inventory_id: int,
    data: InventoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rename, replace settings, or move status forward (draft -> completed, any -> deleted)."""
    inventory = get_owned_inventory(db, inventory_id, current_user, action="write")
    update_data = data.model_dump(exclude_unset=True)

    if "name" in update_data:
        if not update_data["name"] or not update_data["name"].strip():
            raise ApiError.bad_request("Inventory name cannot be empty")
        inventory.name = update_data["name"].strip()
    if update_data.get("status") is not None:
        try:
            inventory_service.check_status_transition(inventory.status, update_data["status"])
        except ValueError as e:
            raise ApiError.bad_request(str(e))
        inventory.status = update_data["status"]
    if "settings" in update_data:
        inventory.settings = update_data["settings"]

    db.commit()
    db.refresh(inventory)
    AuditLog.log_action("update", "inventory", inventory.id, current_user, changes=update_data)
    return inventory


@router.delete("/{inventory_id}", response_model=MessageResponse)
def delete_inventory(inventory_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Delete the inventory and all of its counted rows."""
    inventory = get_owned_inventory(db, inventory_id, current_user, action="delete")
    db.delete(inventory)
    db.commit()
    AuditLog.log_action("delete", "inventory", inventory_id, current_user)
    return MessageResponse(message="Inventory deleted successfully.")


# ==============================================================================
# INVENTORY ITEMS
# ==============================================================================

@router.get("/{inventory_id}/items", response_model=List[InventoryItemResponse])
def list_inventory_items(
    inventory_id: int,
    sort: SortOption = Query("count"),
    direction: Literal["asc", "desc"] = Query("asc"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    inventory = get_owned_inventory(db, inventory_id, current_user)
    rows = inventory_service.list_inventory_items(db, inventory.id)
    return inventory_service.sort_inventory_items(rows, sort=sort, direction=direction)


@router.post("/{inventory_id}/items", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
def add_inventory_item(
    inventory_id: int,
    data: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Attach one of the caller's master items."""
    inventory = get_owned_inventory(db, inventory_id, current_user, action="write")
    item = db.query(Item).filter(Item.id == data.item_id, Item.user_id == current_user.id).first()
    if not item:
        raise ApiError.not_found("Item", reason=f"item {data.item_id} not in catalog of user {current_user.id}")

    try:
        row = inventory_service.add_item_to_inventory(db, inventory, item, data.counted_units)
    except ConflictError as e:
        raise ApiError.conflict(str(e))
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    AuditLog.log_action("create", "inventory_item", row.id, current_user, changes={"item_id": item.id})
    return row


@router.post("/{inventory_id}/items/bulk", response_model=BulkAddResponse, status_code=status.HTTP_201_CREATED)
def add_all_items(inventory_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Attach every master item of the caller that is not yet in the inventory.

    201 with the number added, or 200 with count_added=0 when nothing is missing.
    """
    inventory = get_owned_inventory(db, inventory_id, current_user, action="write")
    try:
        count_added = inventory_service.add_all_remaining_items(db, inventory, current_user.id)
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    if count_added == 0:
        body = BulkAddResponse(message="All available items are already in this inventory.", count_added=0)
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())

    AuditLog.log_action("bulk_add", "inventory", inventory.id, current_user, changes={"count_added": count_added})
    return BulkAddResponse(message="Items added successfully.", count_added=count_added)


@router.get("/{inventory_id}/items/{inventory_item_id}", response_model=InventoryItemResponse)
def get_inventory_item(
    inventory_id: int,
    inventory_item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    inventory = get_owned_inventory(db, inventory_id, current_user)
    return get_owned_inventory_item(db, inventory, inventory_item_id)


@router.patch("/{inventory_id}/items/{inventory_item_id}", response_model=InventoryItemResponse)
def record_count(
    inventory_id: int,
    inventory_item_id: int,
    data: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record counted units; the weight is derived from the master item."""
    inventory = get_owned_inventory(db, inventory_id, current_user, action="write")
    row = get_owned_inventory_item(db, inventory, inventory_item_id)
    try:
        row = inventory_service.record_count(db, row, data.counted_units, data.is_entered)
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    AuditLog.log_action(
        "update", "inventory_item", row.id, current_user, changes=data.model_dump(exclude_unset=True)
    )
    return row


@router.delete("/{inventory_id}/items/{inventory_item_id}", response_model=MessageResponse)
def remove_inventory_item(
    inventory_id: int,
    inventory_item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    inventory = get_owned_inventory(db, inventory_id, current_user, action="delete")
    row = get_owned_inventory_item(db, inventory, inventory_item_id)
    try:
        inventory_service.remove_inventory_item(db, row)
    except ValueError as e:
        raise ApiError.bad_request(str(e))

    AuditLog.log_action("delete", "inventory_item", inventory_item_id, current_user)
    return MessageResponse(message="Item successfully removed from inventory.")
