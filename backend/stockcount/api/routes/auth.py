"""Auth: credential sign-up/login, logout, current user and GitHub OAuth.

- Passwords hashed with bcrypt
- JWT returned in the body and set as an httpOnly cookie
- Credential endpoints are throttled per client IP
"""
from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from stockcount.api.deps import get_current_user, get_db
from stockcount.core.audit import AuditLog
from stockcount.core.config import settings
from stockcount.core.exceptions import ApiError
from stockcount.core.rate_limiter import throttle_credentials
from stockcount.core.security import (
    create_access_token,
    create_oauth_state,
    get_password_hash,
    verify_oauth_state,
    verify_password,
)
from stockcount.models.user import Role, User
from stockcount.schemas.inventory import MessageResponse
from stockcount.schemas.user import OAuthStart, Token, UserCreate, UserLogin, UserResponse
from stockcount.services import oauth_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _issue_token(response: Response, user: User) -> Token:
    token = create_access_token(subject=str(user.id), role=user.role.value)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return Token(access_token=token)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle_credentials)],
)
def register(data: UserCreate, request: Request, db: Session = Depends(get_db)):
    """Self sign-up. New accounts are always TEAM_MEMBER."""
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        AuditLog.log_authentication("register", email, _client_ip(request), False, reason="Email taken")
        raise ApiError.conflict("Email already registered")

    user = User(
        name=data.name,
        email=email,
        password_hash=get_password_hash(data.password),
        role=Role.TEAM_MEMBER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    AuditLog.log_authentication("register", email, _client_ip(request), True)
    return user


@router.post("/login", response_model=Token, dependencies=[Depends(throttle_credentials)])
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Credential login.

    Same 401 for an unknown email, a wrong password, or an account that only
    signs in through OAuth (no password hash).
    """
    email = data.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.password_hash):
        reason = "Unknown email" if not user else "Invalid password or OAuth-only account"
        AuditLog.log_authentication("login", email, _client_ip(request), False, reason=reason)
        raise ApiError.unauthorized("Invalid email or password")

    AuditLog.log_authentication("login", email, _client_ip(request), True)
    return _issue_token(response, user)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.email, _client_ip(request), True)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/oauth/github", response_model=OAuthStart)
def github_start():
    """Authorization URL for the GitHub consent screen. The state is a short-lived signed token."""
    if not settings.github_enabled:
        raise ApiError.bad_request("GitHub sign-in is not configured")
    state = create_oauth_state(oauth_service.GITHUB_PROVIDER)
    return OAuthStart(authorization_url=oauth_service.build_authorization_url(state), state=state)


@router.get("/oauth/github/callback", response_model=Token)
def github_callback(
    request: Request,
    response: Response,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """
    Complete GitHub sign-in.

    The identity is matched by GitHub account id first, then by email, in
    which case it is linked to the existing user. Otherwise a new user
    without a password is created.
    """
    if not settings.github_enabled:
        raise ApiError.bad_request("GitHub sign-in is not configured")
    if not verify_oauth_state(state, oauth_service.GITHUB_PROVIDER):
        raise ApiError.bad_request("Invalid or expired OAuth state")

    try:
        token = oauth_service.exchange_code(code)
        profile = oauth_service.fetch_profile(token["access_token"])
    except oauth_service.OAuthError as e:
        AuditLog.log_authentication("oauth_login", "", _client_ip(request), False, reason=str(e))
        raise ApiError.unauthorized("GitHub sign-in failed", reason=str(e))

    user, outcome = oauth_service.link_or_create_user(db, profile, token)
    action = "oauth_link" if outcome == "linked" else "oauth_login"
    AuditLog.log_authentication(action, user.email, _client_ip(request), True)
    return _issue_token(response, user)
