from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user
from backend.app.api.permission_deps import require_admin
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.user import User
from backend.app.schemas.user import (
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserUpdate,
)
from backend.app.services.user_management import (
    create_user,
    delete_user,
    get_user,
    list_users,
    update_user,
)

router = APIRouter()


def _apply_update(
    db: Session, user_id: UUID, body: UserUpdate, current_user: User
) -> dict:
    try:
        user = update_user(
            db,
            user_id=user_id,
            changes=body.model_dump(exclude_unset=True),
            acting_user=current_user,
        )
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(user)
    return {"user": user}


# ─── Own profile (declared before /{user_id}) ────────────────────────────────


@router.get("/profile/me", response_model=UserEnvelope)
def read_profile(current_user: User = Depends(get_current_user)) -> dict:
    return {"user": current_user}


@router.patch("/profile/me", response_model=UserEnvelope)
@router.put("/profile/me", response_model=UserEnvelope)
def update_profile(
    body: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Update the caller's own account."""
    return _apply_update(db, current_user.id, body, current_user)


# ─── Admin management ────────────────────────────────────────────────────────


@router.get("", response_model=UserListEnvelope)
def list_all_users(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    """List all users. Admin only."""
    return {"users": list_users(db)}


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_new_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    """Create a user account with any role. Admin only."""
    try:
        user = create_user(
            db,
            name=body.name,
            username=body.username,
            password=body.password,
            role=body.role,
            status=body.status,
            phone=body.phone,
            branch=body.branch,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.commit()
    db.refresh(user)
    return {"user": user}


@router.get("/{user_id}", response_model=UserEnvelope)
def read_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    try:
        return {"user": get_user(db, user_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{user_id}", response_model=UserEnvelope)
@router.put("/{user_id}", response_model=UserEnvelope)
def update_existing_user(
    user_id: UUID,
    body: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Update a user. Admins may edit anyone; others only themselves."""
    return _apply_update(db, user_id, body, current_user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Response:
    """Delete a user and end their sessions. Admins cannot delete themselves."""
    try:
        delete_user(db, user_id=user_id, acting_user_id=current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
