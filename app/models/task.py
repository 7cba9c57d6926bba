from __future__ import annotations

import uuid
from datetime import datetime, UTC
from enum import Enum
from typing import Any, MutableMapping, Optional

from sqlalchemy import Column, DateTime, Enum as SAEnum, String, Text, Index, Uuid
from sqlmodel import SQLModel, Field


TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    title: str = Field(sa_column=Column(String(TITLE_MAX_LENGTH), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: TaskStatus = Field(
        default=TaskStatus.pending,
        sa_column=Column(
            SAEnum(
                TaskStatus,
                name="taskstatus",
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        ),
    )
    due_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    # written by the store, never by clients
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


# Index declared with the column objects for portability
Task.__table_args__ = (
    Index("ix_tasks_status_created_at", Task.__table__.c.status, Task.__table__.c.created_at),
)

# Fields a write may set; everything else belongs to the store.
WRITABLE_FIELDS = ("title", "description", "status", "due_date")

# column name -> wire name
PUBLIC_FIELD_NAMES = {
    "id": "id",
    "title": "title",
    "description": "description",
    "status": "status",
    "due_date": "dueDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def parse_task_id(value: Any) -> uuid.UUID:
    """Return ``value`` as a UUID or raise ``ValueError``."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValueError(f"not a task id: {value!r}")
    return uuid.UUID(value)


def check_task_constraints(record: MutableMapping[str, Any]) -> list[str]:
    """Normalise ``record`` in place and return one message per broken field.

    This is the schema enforced at the persistence boundary: the store runs
    it on the full record before every insert and on the merged record
    before every update.
    """
    errors: list[str] = []

    title = record.get("title")
    if isinstance(title, str):
        title = record["title"] = title.strip()
    if not title:
        errors.append("Title is required")
    elif not isinstance(title, str) or not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        errors.append(
            f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
        )

    description = record.get("description")
    if isinstance(description, str):
        description = record["description"] = description.strip()
    if description is not None and (
        not isinstance(description, str) or len(description) > DESCRIPTION_MAX_LENGTH
    ):
        errors.append(f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters")

    status = record.get("status")
    if status is None:
        record["status"] = TaskStatus.pending
    else:
        try:
            record["status"] = TaskStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in TaskStatus)
            errors.append(f"Status must be one of: {allowed}")

    due_date = record.get("due_date")
    if due_date is None:
        errors.append("Due date is required")
    elif not isinstance(due_date, datetime):
        errors.append("Due date must be a valid date")

    return errors
