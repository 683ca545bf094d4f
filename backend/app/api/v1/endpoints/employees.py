from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin
from backend.app.core.database import get_db
from backend.app.models.employee import Employee
from backend.app.models.user import User
from backend.app.schemas.employee import (
    EmployeeCreate,
    EmployeeEnvelope,
    EmployeeListEnvelope,
    EmployeeUpdate,
)
from backend.app.schemas.user import MessageOut

router = APIRouter()


def _get_or_404(db: Session, employee_id: UUID) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.get("", response_model=EmployeeListEnvelope)
def list_employees(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    return {"employees": db.query(Employee).order_by(Employee.name).all()}


@router.post("", response_model=EmployeeEnvelope, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    employee = Employee(**payload.model_dump())
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return {"employee": employee}


@router.get("/{employee_id}", response_model=EmployeeEnvelope)
def get_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    return {"employee": _get_or_404(db, employee_id)}


@router.patch("/{employee_id}", response_model=EmployeeEnvelope)
def update_employee(
    employee_id: UUID,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    employee = _get_or_404(db, employee_id)
    # end_date is the only column that may be cleared
    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k == "end_date"
    }
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    for field, value in changes.items():
        setattr(employee, field, value)
    db.commit()
    db.refresh(employee)
    return {"employee": employee}


@router.delete("/{employee_id}", response_model=MessageOut)
def delete_employee(
    employee_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    db.delete(_get_or_404(db, employee_id))
    db.commit()
    return {"message": "Employee deleted"}
