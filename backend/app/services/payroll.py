from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from backend.app.models.employee import Employee, Salary

SALARY_UPDATE_FIELDS = ("month", "year", "payment_status", "payment_date", "transaction_id")


def get_salary(db: Session, salary_id: UUID) -> Salary:
    salary = db.query(Salary).filter(Salary.id == salary_id).first()
    if not salary:
        raise NotFoundError("Salary not found")
    return salary


def _find(db: Session, employee_id: UUID, month: str, year: int) -> Salary | None:
    return (
        db.query(Salary)
        .filter(
            Salary.employee_id == employee_id,
            Salary.month == month,
            Salary.year == year,
        )
        .first()
    )


def upsert_salary(db: Session, data: dict[str, Any]) -> tuple[Salary, bool]:
    """Create the salary record for an employee's month, or update the existing one.

    Returns ``(salary, created)``.
    """
    employee_id = data["employee_id"]
    if not db.query(Employee.id).filter(Employee.id == employee_id).first():
        raise ValidationError(f"Employee {employee_id} not found")

    salary = _find(db, employee_id, data["month"], data["year"])
    if salary is None:
        salary = Salary(**data)
        db.add(salary)
        db.flush()
        return salary, True

    for field in ("payment_status", "payment_date", "transaction_id"):
        if data.get(field) is not None:
            setattr(salary, field, data[field])
    db.flush()
    return salary, False


def update_salary(db: Session, salary_id: UUID, changes: dict[str, Any]) -> Salary:
    updates = {
        k: v for k, v in changes.items() if k in SALARY_UPDATE_FIELDS and v is not None
    }
    if not updates:
        raise ValidationError("No valid fields to update")

    salary = get_salary(db, salary_id)
    month = updates.get("month", salary.month)
    year = updates.get("year", salary.year)
    if (month, year) != (salary.month, salary.year):
        clash = _find(db, salary.employee_id, month, year)
        if clash and clash.id != salary.id:
            raise ConflictError("A salary record already exists for that month")

    for field, value in updates.items():
        setattr(salary, field, value)
    db.flush()
    return salary
