from __future__ import annotations

import logging
import re
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.models.task import (
    PUBLIC_FIELD_NAMES,
    WRITABLE_FIELDS,
    Task,
    TaskStatus,
    check_task_constraints,
    parse_task_id,
)
from core.exceptions import (
    ConstraintViolation,
    DuplicateValue,
    InvalidIdentifier,
    PersistenceError,
)
from core.storage.ordering import apply_order

log = logging.getLogger("storage.tasks")

SORT_FIELDS: Dict[str, object] = {
    "createdAt": Task.created_at,
    "dueDate": Task.due_date,
    "title": Task.title,
}

# sqlite: "UNIQUE constraint failed: tasks.title"
# postgres: "Key (title)=(foo) already exists."
_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(?P<field>\w+)"),
    re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>.*)\) already exists"),
)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are read as UTC (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def duplicate_from_integrity_error(
    exc: IntegrityError, record: Mapping[str, Any] | None = None
) -> DuplicateValue | None:
    """Build a ``DuplicateValue`` from a unique-constraint failure, else ``None``."""
    raw = str(getattr(exc, "orig", None) or exc)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(raw)
        if not match:
            continue
        column = match.group("field")
        groups = match.groupdict()
        value = groups.get("value")
        if value is None and record is not None:
            value = record.get(column)
        return DuplicateValue(PUBLIC_FIELD_NAMES.get(column, column), value)
    return None


class TaskStore:
    """Async persistence handle for Task documents (SQLModel / SQLAlchemy 2.0).

    One instance per process: it owns the engine and its connection pool,
    and opens a short-lived session per call. Every write runs the entity
    constraints first and maintains ``created_at``/``updated_at``.
    """

    def __init__(self, database_url: str, echo: bool = False):
        if not database_url:
            raise ValueError("DATABASE_URL must be provided")
        self.database_url = database_url
        self._engine = create_async_engine(
            database_url,
            future=True,
            echo=echo,
            pool_pre_ping=True,
        )
        # expire_on_commit=False so objects stay readable after the session closes
        self._sessionmaker = async_sessionmaker(
            bind=self._engine, expire_on_commit=False, class_=AsyncSession
        )

    # ---------- Infra ----------

    async def create_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def ping(self) -> bool:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self):
        async with self._sessionmaker() as s:
            yield s

    @staticmethod
    def _coerce_id(task_id: Any) -> uuid.UUID:
        try:
            return parse_task_id(task_id)
        except ValueError as e:
            raise InvalidIdentifier("id", task_id) from e

    @staticmethod
    def _with_utc(task: Task) -> Task:
        task.due_date = as_utc(task.due_date)
        task.created_at = as_utc(task.created_at)
        task.updated_at = as_utc(task.updated_at)
        return task

    # ---------- Tasks ----------

    async def create(self, doc: Mapping[str, Any]) -> Task:
        record: Dict[str, Any] = {k: doc.get(k) for k in WRITABLE_FIELDS}
        errors = check_task_constraints(record)
        if errors:
            raise ConstraintViolation(errors)
        record["due_date"] = as_utc(record["due_date"])

        now = datetime.now(timezone.utc)
        task = Task(**record, created_at=now, updated_at=now)
        async with self.session() as s:
            try:
                s.add(task)
                await s.commit()
            except IntegrityError as e:
                await s.rollback()
                raise self._integrity_failure(e, record) from e
            except SQLAlchemyError as e:
                await s.rollback()
                raise PersistenceError("task insert failed") from e
        log.debug("task created", extra={"task_id": str(task.id)})
        return self._with_utc(task)

    async def find(
        self, status: TaskStatus | str | None = None, sort: str | None = None
    ) -> List[Task]:
        stmt = select(Task)
        if status is not None:
            stmt = stmt.where(Task.status == TaskStatus(status))
        stmt = apply_order(stmt, sort, SORT_FIELDS, default="createdAt")
        if sort and sort.lstrip("-") != "createdAt":
            # ties keep insertion order
            stmt = stmt.order_by(Task.created_at)
        async with self.session() as s:
            try:
                res = await s.execute(stmt)
            except SQLAlchemyError as e:
                raise PersistenceError("task query failed") from e
            return [self._with_utc(t) for t in res.scalars().all()]

    async def find_by_id(self, task_id: Any) -> Optional[Task]:
        tid = self._coerce_id(task_id)
        async with self.session() as s:
            try:
                task = await s.get(Task, tid)
            except SQLAlchemyError as e:
                raise PersistenceError("task lookup failed") from e
            return self._with_utc(task) if task is not None else None

    async def find_by_id_and_update(
        self, task_id: Any, patch: Mapping[str, Any], *, validate: bool = True
    ) -> Optional[Task]:
        """Apply ``patch`` to one task and return it, or ``None`` if it does not exist.

        Keys outside the writable fields are ignored. With ``validate`` the
        merged record is checked against the entity constraints before the
        write.
        """
        tid = self._coerce_id(task_id)
        async with self.session() as s:
            try:
                task = await s.get(Task, tid)
                if task is None:
                    return None
                record: Dict[str, Any] = {k: getattr(task, k) for k in WRITABLE_FIELDS}
                record.update({k: v for k, v in patch.items() if k in WRITABLE_FIELDS})
                if validate:
                    errors = check_task_constraints(record)
                    if errors:
                        raise ConstraintViolation(errors)
                if isinstance(record.get("due_date"), datetime):
                    record["due_date"] = as_utc(record["due_date"])
                for key, value in record.items():
                    setattr(task, key, value)

                # updated_at must move forward even within one clock tick
                previous = as_utc(task.updated_at)
                now = datetime.now(timezone.utc)
                task.updated_at = now if now > previous else previous + timedelta(microseconds=1)
                await s.commit()
            except IntegrityError as e:
                await s.rollback()
                raise self._integrity_failure(e, record) from e
            except SQLAlchemyError as e:
                await s.rollback()
                raise PersistenceError("task update failed") from e
        log.debug("task updated", extra={"task_id": str(tid)})
        return self._with_utc(task)

    async def find_by_id_and_delete(self, task_id: Any) -> Optional[Task]:
        tid = self._coerce_id(task_id)
        async with self.session() as s:
            try:
                task = await s.get(Task, tid)
                if task is None:
                    return None
                await s.delete(task)
                await s.commit()
            except SQLAlchemyError as e:
                await s.rollback()
                raise PersistenceError("task delete failed") from e
        log.debug("task deleted", extra={"task_id": str(tid)})
        return self._with_utc(task)

    @staticmethod
    def _integrity_failure(exc: IntegrityError, record: Mapping[str, Any]) -> Exception:
        duplicate = duplicate_from_integrity_error(exc, record)
        if duplicate is not None:
            return duplicate
        return PersistenceError("task write violated a database constraint")
