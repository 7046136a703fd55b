"""Create all tables. Run on app startup.

Bootstraps an ADMIN account with a random password when no users exist,
so a fresh deployment can reach the admin endpoints.
"""
import logging
import secrets

from stockcount.core.config import settings
from stockcount.core.security import get_password_hash
from stockcount.db.base import Base
from stockcount.db.session import SessionLocal, engine
from stockcount.models import Account, Inventory, InventoryItem, Item, User  # noqa: F401 - register models
from stockcount.models.user import Role

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            admin = User(
                name="Administrator",
                email=settings.DEFAULT_ADMIN_EMAIL,
                password_hash=get_password_hash(default_password),
                role=Role.ADMIN,
            )
            db.add(admin)
            db.commit()

            logger.warning(
                "Default admin created: email=%s password=%s (change it after first login)",
                settings.DEFAULT_ADMIN_EMAIL,
                default_password,
            )
    finally:
        db.close()
