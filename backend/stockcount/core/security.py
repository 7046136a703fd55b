"""Password hashing (bcrypt) and signed tokens (JWT).

Access tokens carry the user id in ``sub`` and the role at issue time.
OAuth state tokens are short-lived JWTs so the callback needs no server-side storage.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from stockcount.core.config import settings

ACCESS_TOKEN_TYPE = "access"
OAUTH_STATE_TOKEN_TYPE = "oauth_state"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    """Check a password; accounts created through OAuth have no hash and never match."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def _encode(claims: Dict[str, Any], expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _decode(token: str, token_type: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def create_access_token(subject: str, role: Optional[str] = None, expires_minutes: Optional[int] = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    claims: Dict[str, Any] = {"sub": subject, "type": ACCESS_TOKEN_TYPE}
    if role:
        claims["role"] = role
    return _encode(claims, timedelta(minutes=minutes))


def decode_access_token(token: str) -> Optional[str]:
    """Return the subject of a valid access token, or None."""
    payload = _decode(token, ACCESS_TOKEN_TYPE)
    if not payload:
        return None
    return payload.get("sub")


def create_oauth_state(provider: str) -> str:
    return _encode(
        {"type": OAUTH_STATE_TOKEN_TYPE, "provider": provider},
        timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES),
    )


def verify_oauth_state(state: str, provider: str) -> bool:
    payload = _decode(state, OAUTH_STATE_TOKEN_TYPE)
    return bool(payload and payload.get("provider") == provider)
