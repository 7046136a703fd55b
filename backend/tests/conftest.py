"""Shared fixtures: in-memory SQLite per test, a TestClient bound to it, and user factories."""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockcount.api.deps import get_db
from stockcount.core.rate_limiter import login_limiter
from stockcount.core.security import create_access_token, get_password_hash
from stockcount.db.base import Base
from stockcount.db.session import enable_sqlite_foreign_keys
from stockcount.main import app
from stockcount.models import Item, Role, User

PASSWORD = "CountMe123!"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    yield session
    session.close()


@pytest.fixture
def client(db_session_factory):
    def override_get_db():
        session = db_session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    login_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    login_limiter.reset()


@pytest.fixture
def make_user(db):
    def _make_user(email, role=Role.TEAM_MEMBER, name=None, password=PASSWORD):
        user = User(
            name=name or email.split("@")[0].title(),
            email=email,
            password_hash=get_password_hash(password) if password else None,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def headers_for():
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id), role=user.role.value)}"}

    return _headers_for


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role=Role.ADMIN)


@pytest.fixture
def make_item(db):
    def _make_item(user, name, unit_type="quantity", average_weight_per_unit=None, upc_number=None,
                   item_type=None, brand=None):
        item = Item(
            user_id=user.id,
            name=name,
            unit_type=unit_type,
            average_weight_per_unit=average_weight_per_unit,
            upc_number=upc_number,
            item_type=item_type,
            brand=brand,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make_item
