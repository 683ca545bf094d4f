from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from backend.app.api.deps import client_ip, get_current_user, get_optional_session_id
from backend.app.core.config import settings
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError
from backend.app.core.security import create_access_token
from backend.app.middleware.rate_limit import InMemoryRateLimiter
from backend.app.models.user import RoleEnum, User
from backend.app.schemas.user import (
    AuthOut,
    LoginIn,
    MeOut,
    MessageOut,
    RedirectOut,
    SignupIn,
    UserListEnvelope,
)
from backend.app.services.auth_sessions import (
    create_session,
    invalidate_session,
    invalidate_user_sessions,
)
from backend.app.services.user_management import (
    AuthenticationError,
    InactiveUserError,
    authenticate,
    create_user,
    list_users,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# ─── Rate Limiting ───────────────────────────────────────────────────────────
# In-memory per-IP rate limiter. For multi-replica, use Redis.
_login_limiter = InMemoryRateLimiter(
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
)

# Every role lands on the same dashboard; the frontend renders per role.
DASHBOARD_URL = "/dashboard"


def _start_session(db: Session, user: User, request: Request, response: Response) -> str:
    """Open a server-side session, set its cookie and return a bearer token."""
    session = create_session(
        db,
        user,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        path="/",
    )
    return create_access_token(
        subject=str(user.id), role=user.role.value, session_id=session.session_id
    )


@router.post("/signup", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> dict:
    """Self-service registration. New accounts are always salespeople."""
    try:
        user = create_user(
            db,
            name=body.name,
            username=body.username,
            password=body.password,
            role=RoleEnum.SALESPERSON,
            phone=body.phone,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    token = _start_session(db, user, request, response)
    db.commit()
    db.refresh(user)
    return {
        "message": "User created successfully",
        "user": user,
        "token": token,
        "redirect_url": DASHBOARD_URL,
    }


@router.post("/login", response_model=AuthOut)
def login(
    body: LoginIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> dict:
    _login_limiter.check(client_ip(request))

    try:
        user = authenticate(db, username=body.username, password=body.password)
    except InactiveUserError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except AuthenticationError as e:
        logger.info("Failed login for %s from %s", body.username, client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    # One active session per user
    invalidate_user_sessions(db, user.id)
    token = _start_session(db, user, request, response)
    db.commit()
    db.refresh(user)
    logger.info("User %s logged in", user.username)
    return {
        "message": "Login successful",
        "user": user,
        "token": token,
        "redirect_url": DASHBOARD_URL,
    }


@router.get("/me", response_model=MeOut)
def read_me(current_user: User = Depends(get_current_user)) -> dict:
    return {"user": current_user, "redirect_url": DASHBOARD_URL}


@router.post("/logout", response_model=MessageOut)
def logout(
    response: Response,
    db: Session = Depends(get_db),
    session_id: str | None = Depends(get_optional_session_id),
) -> dict[str, str]:
    """Close the caller's session (if any) and clear the cookie."""
    if invalidate_session(db, session_id):
        db.commit()
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )
    return {"message": "Logout successful"}


@router.get("/redirect", response_model=RedirectOut)
def redirect(_current_user: User = Depends(get_current_user)) -> dict[str, str]:
    return {"redirect_url": DASHBOARD_URL}


@router.get("/users", response_model=UserListEnvelope)
def auth_users(
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> dict:
    return {"users": list_users(db)}
