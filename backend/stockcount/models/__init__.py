from stockcount.models.user import Account, Role, User
from stockcount.models.item import Item
from stockcount.models.inventory import Inventory, InventoryItem

__all__ = ["User", "Role", "Account", "Item", "Inventory", "InventoryItem"]
