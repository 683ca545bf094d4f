from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_storekeeper
from backend.app.core.database import get_db
from backend.app.models.supplier import Supplier
from backend.app.models.user import User
from backend.app.schemas.supplier import (
    SupplierCreate,
    SupplierEnvelope,
    SupplierListEnvelope,
    SupplierUpdate,
)
from backend.app.schemas.user import MessageOut

router = APIRouter()


def _get_or_404(db: Session, supplier_id: UUID) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


@router.get("", response_model=SupplierListEnvelope)
def list_suppliers(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    return {"suppliers": db.query(Supplier).order_by(Supplier.name).all()}


@router.post("", response_model=SupplierEnvelope, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    supplier = Supplier(**payload.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return {"supplier": supplier}


@router.get("/{supplier_id}", response_model=SupplierEnvelope)
def get_supplier(
    supplier_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    return {"supplier": _get_or_404(db, supplier_id)}


@router.patch("/{supplier_id}", response_model=SupplierEnvelope)
def update_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    supplier = _get_or_404(db, supplier_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    for field, value in changes.items():
        setattr(supplier, field, value)
    db.commit()
    db.refresh(supplier)
    return {"supplier": supplier}


@router.delete("/{supplier_id}", response_model=MessageOut)
def delete_supplier(
    supplier_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    db.delete(_get_or_404(db, supplier_id))
    db.commit()
    return {"message": "Supplier deleted"}
