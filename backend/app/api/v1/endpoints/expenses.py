from __future__ import annotations

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin
from backend.app.core.database import get_db
from backend.app.models.expense import Expense
from backend.app.models.user import User
from backend.app.schemas.expenses import (
    ExpenseCreate,
    ExpenseEnvelope,
    ExpenseListEnvelope,
    ExpenseUpdate,
)
from backend.app.schemas.user import MessageOut

router = APIRouter()


def _get_or_404(db: Session, expense_id: UUID) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.get("", response_model=ExpenseListEnvelope)
def list_expenses(
    from_date: dt.date | None = Query(None),
    to_date: dt.date | None = Query(None),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    query = db.query(Expense)
    if from_date:
        query = query.filter(Expense.date >= from_date)
    if to_date:
        query = query.filter(Expense.date <= to_date)
    return {"expenses": query.order_by(Expense.date.desc()).all()}


@router.post("", response_model=ExpenseEnvelope, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    expense = Expense(**payload.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return {"expense": expense}


@router.get("/{expense_id}", response_model=ExpenseEnvelope)
def get_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    return {"expense": _get_or_404(db, expense_id)}


@router.patch("/{expense_id}", response_model=ExpenseEnvelope)
def update_expense(
    expense_id: UUID,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    expense = _get_or_404(db, expense_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    for field, value in changes.items():
        setattr(expense, field, value)
    db.commit()
    db.refresh(expense)
    return {"expense": expense}


@router.delete("/{expense_id}", response_model=MessageOut)
def delete_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    db.delete(_get_or_404(db, expense_id))
    db.commit()
    return {"message": "Expense deleted"}
