from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from backend.app.core.security import validate_password_strength
from backend.app.models.user import RoleEnum, UserStatus


def _validate_pw(v: str) -> str:
    error = validate_password_strength(v)
    if error:
        raise ValueError(error)
    return v


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be empty")
    return v.strip()


# ─── Output ──────────────────────────────────────────────────────────────────


class UserOut(BaseModel):
    id: UUID
    name: str
    username: str
    role: RoleEnum
    status: UserStatus
    phone: str | None = None
    balance: float = 0
    branch: str | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    user: UserOut


class UserListEnvelope(BaseModel):
    users: list[UserOut]


# ─── Auth ────────────────────────────────────────────────────────────────────


class LoginIn(BaseModel):
    username: str
    password: str

    @field_validator("username", "password")
    @classmethod
    def required(cls, v: str) -> str:
        return _not_blank(v)


class SignupIn(BaseModel):
    name: str = Field(..., max_length=255)
    username: str = Field(..., min_length=3, max_length=150)
    password: str = Field(..., max_length=128)
    phone: str | None = None

    @field_validator("name", "username")
    @classmethod
    def required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v)


class AuthOut(BaseModel):
    message: str
    user: UserOut
    token: str
    redirect_url: str


class MeOut(BaseModel):
    user: UserOut
    redirect_url: str


class RedirectOut(BaseModel):
    redirect_url: str


class MessageOut(BaseModel):
    message: str


# ─── Management ──────────────────────────────────────────────────────────────


class UserCreate(BaseModel):
    name: str = Field(..., max_length=255)
    username: str = Field(..., min_length=3, max_length=150)
    password: str = Field(..., max_length=128)
    role: RoleEnum = RoleEnum.SALESPERSON
    status: UserStatus = UserStatus.ACTIVE
    phone: str | None = None
    branch: str | None = None

    @field_validator("name", "username")
    @classmethod
    def required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v)


class UserUpdate(BaseModel):
    """Fields a user may change on their own account.

    ``role`` and ``status`` are only applied when an admin makes the change.
    """

    name: str | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=3, max_length=150)
    phone: str | None = None
    password: str | None = Field(None, max_length=128)
    role: RoleEnum | None = None
    status: UserStatus | None = None

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return _validate_pw(v)
