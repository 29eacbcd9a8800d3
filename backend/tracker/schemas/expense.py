"""Expense Schemas: request/response models for /api/v1/expenses.

Invariants:
    - amount >= 0, category non-empty after strip (create and update)
    - date defaults to "now" at creation when omitted
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ExpenseCreate(BaseModel):
    amount: float = Field(ge=0)
    category: str = Field(min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("category")
    @classmethod
    def strip_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("category cannot be empty or whitespace")
        return v


class ExpenseUpdate(BaseModel):
    amount: float | None = Field(None, ge=0)
    category: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("category")
    @classmethod
    def strip_category(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("category cannot be empty or whitespace")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v


class ExpenseResponse(BaseModel):
    id: str
    user_id: str
    amount: float
    category: str
    description: str
    date: datetime
    tags: list[str] | None = None
    created_at: datetime
    updated_at: datetime
