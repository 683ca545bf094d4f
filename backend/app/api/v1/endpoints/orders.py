from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_salesperson
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.order import OrderPaymentStatus, OrderStatus
from backend.app.models.user import User
from backend.app.schemas.order import (
    OrderCreate,
    OrderEnvelope,
    OrderListEnvelope,
    OrderUpdate,
)
from backend.app.schemas.user import MessageOut
from backend.app.services.orders import (
    create_order,
    delete_order,
    get_order,
    list_orders,
    update_order,
)

router = APIRouter()


@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
def place_order(payload: OrderCreate, db: Session = Depends(get_db)) -> dict:
    """Storefront checkout. Public."""
    try:
        order = create_order(db, **payload.model_dump(exclude={"items"}), items=payload.items)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="receipt_code or order_number already exists",
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(order)
    return {"order": order}


@router.get("", response_model=OrderListEnvelope)
def list_all_orders(
    status_filter: OrderStatus | None = Query(None, alias="status"),
    payment_status: OrderPaymentStatus | None = Query(None),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    return {"orders": list_orders(db, status=status_filter, payment_status=payment_status)}


@router.get("/{order_id}", response_model=OrderEnvelope)
def read_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    try:
        return {"order": get_order(db, order_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{order_id}", response_model=OrderEnvelope)
def update_existing_order(
    order_id: UUID,
    payload: OrderUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    """Partial update; completing or cancelling adjusts inventory."""
    try:
        order = update_order(db, order_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(order)
    return {"order": order}


@router.delete("/{order_id}", response_model=MessageOut)
def remove_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    try:
        delete_order(db, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()
    return {"message": "Order deleted"}
