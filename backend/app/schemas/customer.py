from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CustomerCreate(BaseModel):
    name: str = Field(..., max_length=255)
    business_address: str = Field(..., max_length=512)
    contact: str = Field(..., max_length=50)
    email: str = Field(..., max_length=255)

    @field_validator("name", "business_address", "contact", "email")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    business_address: str | None = Field(None, max_length=512)
    contact: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v is not None else None


class CustomerOut(BaseModel):
    id: UUID
    name: str
    business_address: str
    contact: str
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CustomerEnvelope(BaseModel):
    customer: CustomerOut


class CustomerListEnvelope(BaseModel):
    customers: list[CustomerOut]
