"""Time Entry Schemas: timers, manual entries and edits.

Invariants:
    - ManualTimeEntry.end_time >= start_time (duration never negative)
    - TimeEntryUpdate carrying both times obeys the same rule; a change to one
      time is checked against the stored other one by the route
    - category non-empty
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from tracker.core.timestamps import ensure_utc


class TimerStart(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    is_productive: bool = False


class ManualTimeEntry(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    start_time: datetime
    end_time: datetime
    is_productive: bool = False

    @model_validator(mode="after")
    def validate_span(self):
        if ensure_utc(self.end_time) < ensure_utc(self.start_time):
            raise ValueError("end_time must not be before start_time")
        return self


class TimeEntryUpdate(BaseModel):
    category: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = Field(None, ge=0)
    is_productive: bool | None = None

    @model_validator(mode="after")
    def validate_span(self):
        if self.start_time is not None and self.end_time is not None:
            if ensure_utc(self.end_time) < ensure_utc(self.start_time):
                raise ValueError("end_time must not be before start_time")
        return self


class TimeEntryResponse(BaseModel):
    id: str
    user_id: str
    category: str
    description: str
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = None
    is_active: bool
    is_productive: bool
    created_at: datetime
    updated_at: datetime
