from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_salesperson
from backend.app.core.database import get_db
from backend.app.models.customer import Customer
from backend.app.models.user import User
from backend.app.schemas.customer import (
    CustomerCreate,
    CustomerEnvelope,
    CustomerListEnvelope,
    CustomerUpdate,
)
from backend.app.schemas.user import MessageOut

router = APIRouter()


def _get_or_404(db: Session, customer_id: UUID) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("", response_model=CustomerListEnvelope)
def list_customers(
    q: str | None = Query(None, description="Search by name, email, or contact"),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    query = db.query(Customer)
    if q:
        like = f"%{q}%"
        query = query.filter(
            Customer.name.ilike(like)
            | Customer.email.ilike(like)
            | Customer.contact.ilike(like)
        )
    return {"customers": query.order_by(Customer.created_at.desc()).all()}


@router.post("", response_model=CustomerEnvelope, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    customer = Customer(**payload.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return {"customer": customer}


@router.get("/{customer_id}", response_model=CustomerEnvelope)
def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_salesperson),
) -> dict:
    return {"customer": _get_or_404(db, customer_id)}


@router.patch("/{customer_id}", response_model=CustomerEnvelope)
def update_customer(
    customer_id: UUID,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    customer = _get_or_404(db, customer_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    for field, value in changes.items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    return {"customer": customer}


@router.delete("/{customer_id}", response_model=MessageOut)
def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    db.delete(_get_or_404(db, customer_id))
    db.commit()
    return {"message": "Customer deleted"}
