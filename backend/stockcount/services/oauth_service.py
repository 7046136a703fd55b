"""GitHub OAuth: authorization URL, code exchange, profile lookup and account linking."""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

from stockcount.core.config import settings
from stockcount.models.user import Account, Role, User

logger = logging.getLogger(__name__)

GITHUB_PROVIDER = "github"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"
GITHUB_SCOPE = "read:user user:email"


class OAuthError(Exception):
    """The provider refused the exchange or returned an unusable profile."""


@dataclass
class GitHubProfile:
    account_id: str
    email: str
    name: Optional[str] = None


def build_authorization_url(state: str) -> str:
    query = urlencode({
        "client_id": settings.GITHUB_CLIENT_ID,
        "redirect_uri": settings.GITHUB_REDIRECT_URI,
        "scope": GITHUB_SCOPE,
        "state": state,
    })
    return f"{GITHUB_AUTHORIZE_URL}?{query}"


def exchange_code(code: str) -> dict:
    """Trade the callback code for an access token."""
    try:
        response = requests.post(
            GITHUB_TOKEN_URL,
            data={
                "client_id": settings.GITHUB_CLIENT_ID,
                "client_secret": settings.GITHUB_CLIENT_SECRET,
                "code": code,
                "redirect_uri": settings.GITHUB_REDIRECT_URI,
            },
            headers={"Accept": "application/json"},
            timeout=settings.OAUTH_HTTP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        raise OAuthError(f"Token exchange failed: {e}") from e

    if "access_token" not in payload:
        # GitHub answers 200 with an error body for bad or expired codes
        raise OAuthError(payload.get("error_description") or payload.get("error") or "No access token returned")
    return payload


def _github_get(path: str, access_token: str):
    response = requests.get(
        f"{GITHUB_API_URL}{path}",
        headers={
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        },
        timeout=settings.OAUTH_HTTP_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json()


def fetch_profile(access_token: str) -> GitHubProfile:
    """Read the GitHub user; falls back to the primary verified email when the profile email is private."""
    try:
        user = _github_get("/user", access_token)
        account_id = user.get("id")
        if account_id is None:
            raise OAuthError("GitHub profile has no account id")
        email = user.get("email")
        if not email:
            emails = _github_get("/user/emails", access_token)
            primary = next(
                (e for e in emails if e.get("primary") and e.get("verified")),
                None,
            )
            email = primary["email"] if primary else None
    except (requests.RequestException, ValueError) as e:
        raise OAuthError(f"Profile lookup failed: {e}") from e

    if not email:
        raise OAuthError("GitHub account has no verified email address")
    return GitHubProfile(account_id=str(account_id), email=email.lower(), name=user.get("name") or user.get("login"))


def link_or_create_user(db: Session, profile: GitHubProfile, token: dict) -> Tuple[User, str]:
    """
    Resolve the local user for a GitHub identity.

    Returns (user, outcome) where outcome is one of:
    - "existing": the identity was already linked
    - "linked": an existing user with the same email got the identity attached
    - "created": a new TEAM_MEMBER without a password was created
    """
    account = (
        db.query(Account)
        .filter(Account.provider == GITHUB_PROVIDER, Account.provider_account_id == profile.account_id)
        .first()
    )
    if account:
        account.access_token = token.get("access_token")
        account.scope = token.get("scope")
        db.commit()
        return account.user, "existing"

    outcome = "linked"
    user = db.query(User).filter(User.email == profile.email).first()
    if not user:
        user = User(name=profile.name, email=profile.email, password_hash=None, role=Role.TEAM_MEMBER)
        db.add(user)
        outcome = "created"
    elif not user.name and profile.name:
        user.name = profile.name

    user.accounts.append(
        Account(
            provider=GITHUB_PROVIDER,
            provider_account_id=profile.account_id,
            access_token=token.get("access_token"),
            token_type=token.get("token_type"),
            scope=token.get("scope"),
        )
    )
    db.commit()
    db.refresh(user)
    logger.info(f"GitHub identity {profile.account_id} {outcome} for user {user.id}")
    return user, outcome
