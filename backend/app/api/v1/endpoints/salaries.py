from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin
from backend.app.core.database import get_db
from backend.app.core.exceptions import ConflictError, NotFoundError
from backend.app.models.employee import Salary
from backend.app.models.user import User
from backend.app.schemas.employee import (
    SalaryCreate,
    SalaryEnvelope,
    SalaryListEnvelope,
    SalaryUpdate,
)
from backend.app.schemas.user import MessageOut
from backend.app.services.payroll import get_salary, update_salary, upsert_salary

router = APIRouter()


@router.get("", response_model=SalaryListEnvelope)
def list_salaries(
    employee_id: UUID | None = Query(None),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    query = db.query(Salary)
    if employee_id:
        query = query.filter(Salary.employee_id == employee_id)
    return {"salaries": query.order_by(Salary.year.desc(), Salary.created_at.desc()).all()}


@router.post("", response_model=SalaryEnvelope, status_code=status.HTTP_201_CREATED)
def record_salary(
    payload: SalaryCreate,
    response: Response,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    """Create the month's salary record, or update it if one already exists."""
    try:
        salary, created = upsert_salary(db, payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(salary)
    if not created:
        response.status_code = status.HTTP_200_OK
    return {"salary": salary}


@router.get("/{salary_id}", response_model=SalaryEnvelope)
def read_salary(
    salary_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    try:
        return {"salary": get_salary(db, salary_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{salary_id}", response_model=SalaryEnvelope)
def update_existing_salary(
    salary_id: UUID,
    payload: SalaryUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict:
    try:
        salary = update_salary(db, salary_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.commit()
    db.refresh(salary)
    return {"salary": salary}


@router.delete("/{salary_id}", response_model=MessageOut)
def delete_salary(
    salary_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    try:
        salary = get_salary(db, salary_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.delete(salary)
    db.commit()
    return {"message": "Salary deleted"}
