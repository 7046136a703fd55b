"""FastAPI dependencies: DB session, current user from JWT, admin gate.

The JWT is read from:
1. Authorization header (API clients)
2. httpOnly cookie (web frontend)
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from stockcount.core.config import settings
from stockcount.core.exceptions import ApiError
from stockcount.core.permissions import ensure_admin
from stockcount.core.security import decode_access_token
from stockcount.db.session import SessionLocal
from stockcount.models.user import User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """One session per request; rolled back if the handler raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    token = None

    # Header takes precedence over cookie
    if credentials:
        token = credentials.credentials
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise ApiError.unauthorized("Not authenticated")

    sub = decode_access_token(token)
    if not sub:
        raise ApiError.unauthorized("Invalid or expired token")

    try:
        return int(sub)
    except ValueError:
        raise ApiError.unauthorized("Invalid token")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB. The role comes from the row, not the token."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ApiError.unauthorized("User not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    return ensure_admin(current_user)
