"""Todo Schemas: request/response models for /api/v1/todos.

Invariants:
    - title non-empty after strip, on create and on update
    - type restricted to TodoType values (daily, weekly, monthly)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tracker.core.domain_types import TodoType


class TodoCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(min_length=1, max_length=500)
    description: str = Field("", max_length=5000)
    type: TodoType
    due_date: datetime | None = None

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Todo title is required")
        return v


class TodoUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = Field(None, max_length=5000)
    type: TodoType | None = None
    is_completed: bool | None = None
    due_date: datetime | None = None

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v:
            raise ValueError("Todo title cannot be blank")
        return v


class TodoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    type: TodoType
    is_completed: bool
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
