from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_storekeeper
from backend.app.core.database import get_db
from backend.app.core.exceptions import NotFoundError
from backend.app.models.user import User
from backend.app.schemas.inventory import (
    StockCreate,
    StockEnvelope,
    StockListEnvelope,
    StockUpdate,
)
from backend.app.schemas.user import MessageOut
from backend.app.services.inventory import (
    create_stock,
    delete_stock,
    get_stock,
    list_stocks,
    update_stock,
)

router = APIRouter()


@router.get("", response_model=StockListEnvelope)
def list_all_stock(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    return {"stocks": list_stocks(db)}


@router.get("/{stock_id}", response_model=StockEnvelope)
def read_stock(
    stock_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        return {"stock": get_stock(db, stock_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=StockEnvelope, status_code=status.HTTP_201_CREATED)
def create_new_stock(
    payload: StockCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        stock = create_stock(db, payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(stock)
    return {"stock": stock}


@router.patch("/{stock_id}", response_model=StockEnvelope)
def update_existing_stock(
    stock_id: UUID,
    payload: StockUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        stock = update_stock(db, stock_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(stock)
    return {"stock": stock}


@router.delete("/{stock_id}", response_model=MessageOut)
def remove_stock(
    stock_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    try:
        delete_stock(db, stock_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()
    return {"message": "Stock deleted"}
