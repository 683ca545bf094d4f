"""User management: CRUD operations for user accounts.

This module does NOT call db.commit(); the caller (endpoint) is responsible
for committing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.models.user import RoleEnum, User, UserStatus
from backend.app.services.auth_sessions import invalidate_user_sessions

logger = logging.getLogger(__name__)

SELF_EDITABLE_FIELDS = ("name", "username", "phone", "password")
ADMIN_ONLY_FIELDS = ("role", "status")


class AuthenticationError(ValueError):
    """Username or password is wrong."""


class InactiveUserError(ValueError):
    """The account exists but has been deactivated."""


def normalize_username(username: str) -> str:
    return username.strip().lower()


def list_users(db: Session) -> list[User]:
    """Return all users ordered by creation date descending."""
    return (
        db.query(User)
        .order_by(User.created_at.desc())
        .all()
    )


def get_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return (
        db.query(User)
        .filter(User.username == normalize_username(username))
        .first()
    )


def create_user(
    db: Session,
    *,
    name: str,
    username: str,
    password: str,
    role: RoleEnum = RoleEnum.SALESPERSON,
    status: UserStatus = UserStatus.ACTIVE,
    phone: str | None = None,
    branch: str | None = None,
) -> User:
    """Create a new user account. Raises ConflictError if username taken."""
    if get_user_by_username(db, username):
        raise ConflictError("Username already in use")

    user = User(
        name=name,
        username=normalize_username(username),
        hashed_password=get_password_hash(password),
        role=role,
        status=status,
        phone=phone,
        branch=branch,
    )
    db.add(user)
    db.flush()
    logger.info("Created user %s with role %s", user.username, role.value)
    return user


def update_user(
    db: Session,
    *,
    user_id: UUID,
    changes: dict[str, Any],
    acting_user: User,
) -> User:
    """Apply a partial update on behalf of *acting_user*.

    Non-admins may only edit themselves and only name, username, phone and
    password; admins may additionally change role and status.
    """
    is_admin = acting_user.role == RoleEnum.ADMIN
    if not is_admin and acting_user.id != user_id:
        raise PermissionError("Insufficient permissions")

    allowed = SELF_EDITABLE_FIELDS + (ADMIN_ONLY_FIELDS if is_admin else ())
    updates = {
        field: value
        for field, value in changes.items()
        if field in allowed and value is not None
    }
    if not updates:
        raise ValidationError("No valid fields to update")

    user = get_user(db, user_id)

    if "username" in updates:
        username = normalize_username(updates.pop("username"))
        if username != user.username:
            existing = get_user_by_username(db, username)
            if existing and existing.id != user.id:
                raise ConflictError("Username already in use")
            user.username = username

    if "password" in updates:
        user.hashed_password = get_password_hash(updates.pop("password"))

    for field, value in updates.items():
        setattr(user, field, value)

    if user.status == UserStatus.INACTIVE:
        invalidate_user_sessions(db, user.id)

    db.flush()
    return user


def delete_user(db: Session, *, user_id: UUID, acting_user_id: UUID) -> None:
    """Delete a user. Admins cannot delete themselves."""
    if user_id == acting_user_id:
        raise ValidationError("Cannot delete your own account")
    user = get_user(db, user_id)
    invalidate_user_sessions(db, user.id)
    db.delete(user)
    db.flush()
    logger.info("Deleted user %s", user.username)


def authenticate(db: Session, *, username: str, password: str) -> User:
    """Return the user for valid credentials.

    Raises AuthenticationError for an unknown user or wrong password, and
    InactiveUserError for a deactivated account.
    """
    user = get_user_by_username(db, username)
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise InactiveUserError("Account is inactive")
    user.last_login = datetime.now(timezone.utc)
    db.flush()
    return user
