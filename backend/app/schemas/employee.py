from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from backend.app.models.employee import SalaryPaymentStatus

_REQUIRED_TEXT = (
    "name",
    "address",
    "email",
    "contact",
    "position",
    "branch",
    "education_level",
    "department",
    "gender",
    "nationality",
    "cv",
    "status",
)


# ─── Employee ────────────────────────────────────────────────────────────────


class EmployeeCreate(BaseModel):
    name: str
    address: str
    email: str
    contact: str
    position: str
    branch: str
    education_level: str
    department: str
    gender: str
    nationality: str
    cv: str
    status: str
    start_date: dt.date
    end_date: dt.date | None = None
    salary: Decimal = Field(..., ge=0)

    @field_validator(*_REQUIRED_TEXT)
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class EmployeeUpdate(BaseModel):
    name: str | None = None
    address: str | None = None
    email: str | None = None
    contact: str | None = None
    position: str | None = None
    branch: str | None = None
    education_level: str | None = None
    department: str | None = None
    gender: str | None = None
    nationality: str | None = None
    cv: str | None = None
    status: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    salary: Decimal | None = Field(None, ge=0)


class EmployeeOut(BaseModel):
    id: UUID
    name: str
    address: str
    email: str
    contact: str
    position: str
    branch: str
    education_level: str
    department: str
    gender: str
    nationality: str
    cv: str
    status: str
    start_date: dt.date
    end_date: dt.date | None
    salary: float
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class EmployeeEnvelope(BaseModel):
    employee: EmployeeOut


class EmployeeListEnvelope(BaseModel):
    employees: list[EmployeeOut]


# ─── Salary ──────────────────────────────────────────────────────────────────


class SalaryCreate(BaseModel):
    employee_id: UUID
    month: str = Field(..., min_length=1, max_length=20)
    year: int = Field(..., ge=1900, le=9999)
    payment_status: SalaryPaymentStatus = SalaryPaymentStatus.UNPAID
    payment_date: dt.datetime | None = None
    transaction_id: str | None = Field(None, max_length=255)


class SalaryUpdate(BaseModel):
    month: str | None = Field(None, min_length=1, max_length=20)
    year: int | None = Field(None, ge=1900, le=9999)
    payment_status: SalaryPaymentStatus | None = None
    payment_date: dt.datetime | None = None
    transaction_id: str | None = Field(None, max_length=255)


class SalaryOut(BaseModel):
    id: UUID
    employee_id: UUID
    month: str
    year: int
    payment_status: SalaryPaymentStatus
    payment_date: dt.datetime | None
    transaction_id: str | None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class SalaryEnvelope(BaseModel):
    salary: SalaryOut


class SalaryListEnvelope(BaseModel):
    salaries: list[SalaryOut]
