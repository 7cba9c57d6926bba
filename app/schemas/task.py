from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.task import TaskStatus


class TaskOut(BaseModel):
    """Wire form of a Task (camelCase keys)."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )

    id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    due_date: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive values; they were stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TaskEnvelope(BaseModel):
    success: bool = True
    data: TaskOut


class TaskListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[TaskOut]


class EmptyEnvelope(BaseModel):
    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class ErrorDetail(BaseModel):
    message: str
    code: int


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: ErrorDetail
