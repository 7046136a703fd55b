#!/usr/bin/env python
"""Create (or promote) an admin user for development.

Usage: python create_admin_user.py EMAIL PASSWORD [NAME]
"""
import sys

from stockcount.core.config import settings
from stockcount.core.security import get_password_hash
from stockcount.db.init_db import init_db
from stockcount.db.session import SessionLocal
from stockcount.models.user import Role, User


def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 1

    email, password = argv[1].lower(), argv[2]
    name = argv[3] if len(argv) > 3 else "Administrator"
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
        return 1

    init_db()
    db = SessionLocal()
    try:
        users = db.query(User).order_by(User.id).all()
        print(f"\n{'='*60}")
        print(f"Current users in database: {len(users)}")
        print(f"{'='*60}")
        for u in users:
            print(f"  ID: {u.id} | Email: {u.email} | Role: {u.role.value}")

        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = Role.ADMIN
            user.password_hash = get_password_hash(password)
            action = "Promoted"
        else:
            user = User(name=name, email=email, password_hash=get_password_hash(password), role=Role.ADMIN)
            db.add(user)
            action = "Created"
        db.commit()

        print(f"\n{action} admin user {email}\n")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv))
