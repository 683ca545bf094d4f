"""Authentication dependency.

A request is authenticated by, in order:

1. an ``Authorization: Bearer`` token whose ``sid`` claim names an active
   session, or
2. the session cookie, whose value is looked up in the sessions table.

Either way the server-side session must be active and unexpired, so logging
out (or logging in elsewhere) revokes both.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.database import get_db
from backend.app.core.security import decode_access_token
from backend.app.models.session import UserSession
from backend.app.models.user import User
from backend.app.services.auth_sessions import get_active_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass
class AuthContext:
    user: User
    session: UserSession


def _session_from_token(db: Session, token: str | None) -> UserSession | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    session = get_active_session(db, payload.get("sid"))
    if session is None or str(session.user_id) != str(payload.get("sub")):
        return None
    return session


def get_auth_context(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> AuthContext:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )

    session = _session_from_token(db, token)
    if session is None:
        session = get_active_session(db, request.cookies.get(settings.SESSION_COOKIE_NAME))
    if session is None:
        raise credentials_exception

    user = db.query(User).filter(User.id == session.user_id).first()
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user"
        )

    # Persist the last_activity touch even on read-only requests
    db.commit()
    return AuthContext(user=user, session=session)


def get_current_user(ctx: AuthContext = Depends(get_auth_context)) -> User:
    return ctx.user


def get_optional_session_id(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> str | None:
    """Session id the caller presents, without validating it."""
    if token:
        payload = decode_access_token(token)
        if payload and payload.get("sid"):
            return payload["sid"]
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
