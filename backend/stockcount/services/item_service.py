"""Master item catalog: validation, CRUD helpers and the admin catalog copy."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockcount.core.exceptions import ConflictError
from stockcount.models.inventory import STATUS_DRAFT, Inventory, InventoryItem
from stockcount.models.item import UNIT_QUANTITY, UNIT_WEIGHT, Item
from stockcount.schemas.item import ItemCreate, ItemUpdate
from stockcount.services.inventory_service import calculate_weight

logger = logging.getLogger(__name__)

COPIED_FIELDS = ("name", "upc_number", "average_weight_per_unit", "unit_type", "item_type", "brand")


def normalize_unit_weight(unit_type: str, average_weight_per_unit: Optional[float]) -> Optional[float]:
    """
    Enforce the unit type / weight pairing.

    Quantity items never carry a weight; weight items need a positive one.
    """
    if unit_type == UNIT_QUANTITY:
        return None
    if unit_type != UNIT_WEIGHT:
        raise ValueError(f"Unknown unit type: {unit_type}")
    if average_weight_per_unit is None or average_weight_per_unit <= 0:
        raise ValueError("average_weight_per_unit must be a positive number for weight items")
    return float(average_weight_per_unit)


def _ensure_upc_free(db: Session, user_id: int, upc_number: Optional[str], exclude_item_id: Optional[int] = None):
    if not upc_number:
        return
    q = db.query(Item.id).filter(Item.user_id == user_id, Item.upc_number == upc_number)
    if exclude_item_id is not None:
        q = q.filter(Item.id != exclude_item_id)
    if q.first():
        raise ConflictError(f"An item with UPC {upc_number} already exists")


def list_items(
    db: Session,
    user_id: int,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Item]:
    q = db.query(Item).filter(Item.user_id == user_id)
    if search:
        pattern = f"%{search}%"
        q = q.filter(
            Item.name.ilike(pattern) | Item.brand.ilike(pattern) | Item.upc_number.ilike(pattern)
        )
    return q.order_by(Item.created_at.desc(), Item.id.desc()).offset(skip).limit(limit).all()


def create_item(db: Session, user_id: int, data: ItemCreate) -> Item:
    _ensure_upc_free(db, user_id, data.upc_number)
    item = Item(
        user_id=user_id,
        name=data.name,
        upc_number=data.upc_number,
        unit_type=data.unit_type,
        average_weight_per_unit=normalize_unit_weight(data.unit_type, data.average_weight_per_unit),
        item_type=data.item_type,
        brand=data.brand,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, item: Item, data: ItemUpdate) -> Item:
    """
    Apply a partial update, re-checking the unit/weight pairing against the merged row.

    Counts in draft inventories get their calculated weight refreshed; completed
    inventories keep the weights they were closed with.
    """
    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] is None:
        raise ValueError("Name cannot be empty")

    unit_type = update_data.get("unit_type") or item.unit_type
    weight = update_data.get("average_weight_per_unit", item.average_weight_per_unit)
    update_data["unit_type"] = unit_type
    update_data["average_weight_per_unit"] = normalize_unit_weight(unit_type, weight)

    if "upc_number" in update_data:
        _ensure_upc_free(db, item.user_id, update_data["upc_number"], exclude_item_id=item.id)

    weight_changed = (
        update_data["unit_type"] != item.unit_type
        or update_data["average_weight_per_unit"] != item.average_weight_per_unit
    )
    for key, value in update_data.items():
        setattr(item, key, value)

    if weight_changed:
        rows = (
            db.query(InventoryItem)
            .join(Inventory, InventoryItem.inventory_id == Inventory.id)
            .filter(InventoryItem.item_id == item.id, Inventory.status == STATUS_DRAFT)
            .all()
        )
        for row in rows:
            row.calculated_weight = calculate_weight(row.counted_units, item)
        logger.info(f"Recalculated weight on {len(rows)} draft count rows for item {item.id}")

    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, item: Item) -> None:
    """Delete a master item that no inventory references."""
    in_use = db.query(InventoryItem).filter(InventoryItem.item_id == item.id).count()
    if in_use:
        raise ConflictError(
            f"Item is used in {in_use} inventory row(s); remove it from those inventories first"
        )
    db.delete(item)
    db.commit()


def copy_items(db: Session, source_user_id: int, target_user_id: int) -> Tuple[int, int, int]:
    """
    Copy every master item of source_user_id to target_user_id.

    The source catalog is untouched. Items whose UPC the target already owns
    are skipped. Items without a UPC are always copied.

    Returns:
        (copied, skipped, total_source_items)
    """
    source_items = db.query(Item).filter(Item.user_id == source_user_id).order_by(Item.id).all()
    if not source_items:
        return 0, 0, 0

    taken_upcs = {
        upc
        for (upc,) in db.query(Item.upc_number).filter(
            Item.user_id == target_user_id, Item.upc_number.isnot(None)
        )
    }

    copied = 0
    for source in source_items:
        if source.upc_number and source.upc_number in taken_upcs:
            continue
        db.add(Item(user_id=target_user_id, **{f: getattr(source, f) for f in COPIED_FIELDS}))
        if source.upc_number:
            taken_upcs.add(source.upc_number)
        copied += 1

    db.commit()
    skipped = len(source_items) - copied
    logger.info(
        f"Copied {copied}/{len(source_items)} items from user {source_user_id} "
        f"to user {target_user_id} ({skipped} skipped)"
    )
    return copied, skipped, len(source_items)
