"""Seed a sample master item catalog and a draft inventory for one user."""
import sys

from stockcount.db.init_db import init_db
from stockcount.db.session import SessionLocal
from stockcount.models.inventory import Inventory
from stockcount.models.item import Item
from stockcount.models.user import User
from stockcount.services import inventory_service

SAMPLE_ITEMS = [
    {"name": "Sparkling Water 500ml", "upc_number": "000000000017", "unit_type": "quantity",
     "item_type": "Beverages", "brand": "Fizz"},
    {"name": "Cola 330ml", "upc_number": "000000000024", "unit_type": "quantity",
     "item_type": "Beverages", "brand": "Fizz"},
    {"name": "Orange Juice 1L", "upc_number": "000000000031", "unit_type": "quantity",
     "item_type": "Beverages", "brand": "Sunny"},
    {"name": "Cheddar Wheel", "upc_number": "000000000048", "unit_type": "weight",
     "average_weight_per_unit": 2.5, "item_type": "Dairy", "brand": "Hillside"},
    {"name": "Butter Block", "upc_number": "000000000055", "unit_type": "weight",
     "average_weight_per_unit": 0.25, "item_type": "Dairy", "brand": "Hillside"},
    {"name": "Ground Coffee 250g", "upc_number": "000000000062", "unit_type": "quantity",
     "item_type": "Pantry", "brand": "Roastery"},
    {"name": "Basmati Rice Sack", "upc_number": "000000000079", "unit_type": "weight",
     "average_weight_per_unit": 10.0, "item_type": "Pantry", "brand": None},
    {"name": "Loose Apples", "upc_number": None, "unit_type": "weight",
     "average_weight_per_unit": 0.18, "item_type": "Produce", "brand": None},
]


def seed_items(email: str):
    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            print(f"No user with email {email}. Register first.")
            return 1

        owned_upcs = {upc for (upc,) in db.query(Item.upc_number).filter(Item.user_id == user.id)}
        added = 0
        for data in SAMPLE_ITEMS:
            if data["upc_number"] and data["upc_number"] in owned_upcs:
                continue
            db.add(Item(user_id=user.id, **data))
            added += 1
        db.commit()

        inventory = Inventory(user_id=user.id, name="Sample count")
        db.add(inventory)
        db.commit()
        db.refresh(inventory)
        rows = inventory_service.add_all_remaining_items(db, inventory, user.id)

        print(f"Added {added} items to the catalog of {user.email}")
        print(f"Created draft inventory '{inventory.name}' (id {inventory.id}) with {rows} rows")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python seed_items.py EMAIL")
        sys.exit(1)
    sys.exit(seed_items(sys.argv[1]))
