from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ExpenseCreate(BaseModel):
    item: str = Field(..., max_length=255)
    description: str
    amount: Decimal
    submitted_by: str = Field(..., max_length=255)
    date: dt.date

    @field_validator("item", "description", "submitted_by")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class ExpenseUpdate(BaseModel):
    item: str | None = Field(None, max_length=255)
    description: str | None = None
    amount: Decimal | None = Field(None, gt=0)
    submitted_by: str | None = Field(None, max_length=255)
    date: dt.date | None = None


class ExpenseOut(BaseModel):
    id: UUID
    item: str
    description: str
    amount: float
    submitted_by: str
    date: dt.date
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class ExpenseEnvelope(BaseModel):
    expense: ExpenseOut


class ExpenseListEnvelope(BaseModel):
    expenses: list[ExpenseOut]
