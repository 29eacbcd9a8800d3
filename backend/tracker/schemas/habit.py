"""Habit Schemas: request/response models for habits and their completion logs.

Invariants:
    - name non-empty after strip (create and update), target_count >= 1
    - frequency restricted to HabitFrequency values
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tracker.core.domain_types import HabitFrequency


class HabitCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    frequency: HabitFrequency = HabitFrequency.DAILY
    target_count: int = Field(1, ge=1, le=100)

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Habit name is required")
        return v


class HabitUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    frequency: HabitFrequency | None = None
    target_count: int | None = Field(None, ge=1, le=100)
    is_active: bool | None = None

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v:
            raise ValueError("Habit name cannot be blank")
        return v


class HabitResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: str
    frequency: HabitFrequency
    target_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class HabitLogCreate(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class HabitLogResponse(BaseModel):
    id: str
    habit_id: str
    user_id: str
    completed_at: datetime
    notes: str | None = None
    created_at: datetime
