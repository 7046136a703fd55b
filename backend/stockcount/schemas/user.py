from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from stockcount.core.config import settings
from stockcount.models.user import Role


def _check_password(v: str) -> str:
    if len(v) < settings.MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    return v


class UserCreate(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _check_password(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: Role
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class OAuthStart(BaseModel):
    authorization_url: str
    state: str


class AdminUserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: Role

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator('password')
    @classmethod
    def password_min_length(cls, v: str) -> str:
        return _check_password(v)


class RoleUpdate(BaseModel):
    role: Role
