from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import (
    require_admin,
    require_staff,
    require_storekeeper,
)
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.inventory import Product
from backend.app.models.user import User
from backend.app.schemas.inventory import (
    ProductCreate,
    ProductEnvelope,
    ProductListEnvelope,
    ProductUpdate,
)
from backend.app.schemas.user import MessageOut
from backend.app.services.inventory import (
    create_product,
    delete_product,
    get_product,
    list_products,
    update_product,
)
from backend.app.services.notifications import check_product

logger = logging.getLogger(__name__)

router = APIRouter()


def _refresh_alerts(db: Session, product: Product) -> None:
    """Raise low-stock/expiry alerts for a freshly saved product.

    The product itself is already committed; a failure here only loses the
    alert, which the periodic scan will raise later.
    """
    try:
        check_product(db, product)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Notification check failed for product %s", product.id)


@router.get("", response_model=ProductListEnvelope)
def list_all_products(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_staff),
) -> dict:
    return {"products": list_products(db)}


@router.get("/{product_id}", response_model=ProductEnvelope)
def read_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_staff),
) -> dict:
    try:
        return {"product": get_product(db, product_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=ProductEnvelope, status_code=status.HTTP_201_CREATED)
def create_new_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        product = create_product(db, payload.model_dump())
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.commit()
    _refresh_alerts(db, product)
    db.refresh(product)
    return {"product": product}


@router.patch("/{product_id}", response_model=ProductEnvelope)
def update_existing_product(
    product_id: UUID,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        product = update_product(db, product_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    _refresh_alerts(db, product)
    db.refresh(product)
    return {"product": product}


@router.delete("/{product_id}", response_model=MessageOut)
def remove_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    try:
        delete_product(db, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()
    return {"message": "Product deleted"}
