"""Inventory sessions: status rules, count recording, bulk reconciliation and ordering."""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session, joinedload

from stockcount.core.exceptions import ConflictError
from stockcount.models.inventory import (
    STATUS_COMPLETED,
    STATUS_DELETED,
    STATUS_DRAFT,
    Inventory,
    InventoryItem,
)
from stockcount.models.item import UNIT_WEIGHT, Item

logger = logging.getLogger(__name__)

# completed never goes back to draft; deleted is terminal
ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    STATUS_DRAFT: {STATUS_COMPLETED, STATUS_DELETED},
    STATUS_COMPLETED: {STATUS_DELETED},
    STATUS_DELETED: set(),
}

BULK_INSERT_CHUNK = 500


def calculate_weight(counted_units: Optional[float], item: Item) -> Optional[float]:
    """Total weight of a count. None for items counted by quantity."""
    if item.unit_type != UNIT_WEIGHT:
        return None
    return (counted_units or 0) * (item.average_weight_per_unit or 0)


def check_status_transition(current: str, new: str) -> None:
    if new == current:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Cannot change inventory status from {current} to {new}")


def ensure_editable(inventory: Inventory) -> None:
    """Counts and membership can only change while the inventory is a draft."""
    if inventory.status != STATUS_DRAFT:
        raise ValueError(f"Inventory is {inventory.status} and can no longer be changed")


def list_inventory_items(db: Session, inventory_id: int) -> List[InventoryItem]:
    return (
        db.query(InventoryItem)
        .options(joinedload(InventoryItem.item))
        .filter(InventoryItem.inventory_id == inventory_id)
        .order_by(InventoryItem.created_at.asc(), InventoryItem.id.asc())
        .all()
    )


def add_item_to_inventory(db: Session, inventory: Inventory, item: Item, counted_units: float = 0) -> InventoryItem:
    """Attach one master item. The pair (inventory, item) must not exist yet."""
    ensure_editable(inventory)
    existing = (
        db.query(InventoryItem.id)
        .filter(InventoryItem.inventory_id == inventory.id, InventoryItem.item_id == item.id)
        .first()
    )
    if existing:
        raise ConflictError("Item already exists in this inventory")

    row = InventoryItem(
        inventory_id=inventory.id,
        item_id=item.id,
        counted_units=counted_units,
        calculated_weight=calculate_weight(counted_units, item),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def _insert_ignoring_duplicates(db: Session, rows: List[dict]) -> int:
    """Insert rows, letting the (inventory_id, item_id) constraint drop duplicates where the backend supports it."""
    dialect = _dialect_name(db)
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        db.add_all([InventoryItem(**row) for row in rows])
        db.flush()
        return len(rows)

    inserted = 0
    for start in range(0, len(rows), BULK_INSERT_CHUNK):
        chunk = rows[start:start + BULK_INSERT_CHUNK]
        stmt = insert(InventoryItem).values(chunk).on_conflict_do_nothing(
            index_elements=["inventory_id", "item_id"]
        )
        inserted += db.execute(stmt).rowcount
    return inserted


def add_all_remaining_items(db: Session, inventory: Inventory, user_id: int) -> int:
    """
    Attach every master item of user_id that is not yet in the inventory.

    New rows start at zero units. Returns the number of rows inserted, so a
    repeated call reports 0.
    """
    ensure_editable(inventory)

    owned_ids = {item_id for (item_id,) in db.query(Item.id).filter(Item.user_id == user_id)}
    present_ids = {
        item_id
        for (item_id,) in db.query(InventoryItem.item_id).filter(InventoryItem.inventory_id == inventory.id)
    }
    missing = sorted(owned_ids - present_ids)
    if not missing:
        return 0

    weight_ids = {
        item_id
        for (item_id,) in db.query(Item.id).filter(Item.id.in_(missing), Item.unit_type == UNIT_WEIGHT)
    }
    rows = [
        {
            "inventory_id": inventory.id,
            "item_id": item_id,
            "counted_units": 0,
            "calculated_weight": 0.0 if item_id in weight_ids else None,
            "is_entered": False,
        }
        for item_id in missing
    ]
    count_added = _insert_ignoring_duplicates(db, rows)
    db.commit()

    logger.info(f"Bulk added {count_added} items to inventory {inventory.id} ({len(missing)} missing)")
    return count_added


def record_count(
    db: Session,
    row: InventoryItem,
    counted_units: Optional[float] = None,
    is_entered: Optional[bool] = None,
) -> InventoryItem:
    """Store a count and derive its weight. Recording a count marks the row as entered unless told otherwise."""
    ensure_editable(row.inventory)
    if counted_units is not None:
        row.counted_units = counted_units
        row.calculated_weight = calculate_weight(counted_units, row.item)
        row.is_entered = True if is_entered is None else is_entered
    elif is_entered is not None:
        row.is_entered = is_entered
    db.commit()
    db.refresh(row)
    return row


def remove_inventory_item(db: Session, row: InventoryItem) -> None:
    ensure_editable(row.inventory)
    db.delete(row)
    db.commit()


def _text_key(value: Optional[str]):
    # nulls last, case-insensitive
    return (value is None, (value or "").casefold())


SORT_KEYS: Dict[str, Callable[[InventoryItem], object]] = {
    "name": lambda r: r.item.name,
    "unit_type": lambda r: r.item.unit_type,
    "upc_number": lambda r: r.item.upc_number,
    "counted_units": lambda r: r.counted_units,
    "calculated_weight": lambda r: r.calculated_weight,
    "brand": lambda r: r.item.brand,
    "item_type": lambda r: r.item.item_type,
}
SORT_OPTIONS = ("count",) + tuple(SORT_KEYS)


def sort_inventory_items(rows: Iterable[InventoryItem], sort: str = "count", direction: str = "asc") -> List[InventoryItem]:
    """
    Order rows for display.

    "count" is the fixed counting-walk order: category, then brand, then name.
    Any other option sorts by that single column; rows without a value
    always come last regardless of direction.
    """
    rows = list(rows)
    if sort == "count":
        return sorted(
            rows,
            key=lambda r: (_text_key(r.item.item_type), _text_key(r.item.brand), _text_key(r.item.name)),
        )

    if sort not in SORT_KEYS:
        raise ValueError(f"Unknown sort option: {sort}")

    get = SORT_KEYS[sort]
    present = [r for r in rows if get(r) is not None]
    missing = [r for r in rows if get(r) is None]

    def key(r):
        value = get(r)
        return value.casefold() if isinstance(value, str) else value

    present.sort(key=key, reverse=direction == "desc")
    return present + missing
