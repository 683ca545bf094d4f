from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class SupplierCreate(BaseModel):
    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    contact: str = Field(..., max_length=50)
    address: str = Field(..., max_length=512)

    @field_validator("name", "email", "contact", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class SupplierUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    contact: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=512)


class SupplierOut(BaseModel):
    id: UUID
    name: str
    email: str
    contact: str
    address: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SupplierEnvelope(BaseModel):
    supplier: SupplierOut


class SupplierListEnvelope(BaseModel):
    suppliers: list[SupplierOut]
