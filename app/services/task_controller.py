from __future__ import annotations

import logging
from typing import Any, Awaitable, Dict, List, Optional, TypeVar
from uuid import UUID

import anyio

from app.models.task import Task, TaskStatus
from core.exceptions import NotFound, PersistenceTimeout
from core.log import task_id_var
from core.storage.task_store import TaskStore

log = logging.getLogger("api.tasks")

T = TypeVar("T")


class TaskController:
    """The five task operations, one store call each.

    Inputs are already validated. Failures are raised as tagged
    ``AppError``s and left to the exception handlers.
    """

    def __init__(self, store: TaskStore, timeout_s: float | None = None):
        self.store = store
        self.timeout_s = timeout_s

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        if not self.timeout_s:
            return await awaitable
        try:
            with anyio.fail_after(self.timeout_s):
                return await awaitable
        except TimeoutError as e:
            raise PersistenceTimeout(
                f"{operation} exceeded {self.timeout_s}s", details={"operation": operation}
            ) from e

    async def create(self, data: Dict[str, Any]) -> Task:
        task = await self._call("create", self.store.create(data))
        task_id_var.set(str(task.id))
        log.info("task created", extra={"operation": "create"})
        return task

    async def list(
        self, status: TaskStatus | None = None, sort_by: str | None = None
    ) -> List[Task]:
        return await self._call("list", self.store.find(status=status, sort=sort_by))

    async def get(self, task_id: UUID) -> Task:
        task = await self._call("get", self.store.find_by_id(task_id))
        if task is None:
            raise NotFound("Task not found")
        return task

    async def update(self, task_id: UUID, patch: Dict[str, Any]) -> Task:
        task: Optional[Task] = await self._call(
            "update", self.store.find_by_id_and_update(task_id, patch, validate=True)
        )
        if task is None:
            raise NotFound("Task not found")
        task_id_var.set(str(task_id))
        log.info("task updated", extra={"operation": "update"})
        return task

    async def delete(self, task_id: UUID) -> None:
        task = await self._call("delete", self.store.find_by_id_and_delete(task_id))
        if task is None:
            raise NotFound("Task not found")
        task_id_var.set(str(task_id))
        log.info("task deleted", extra={"operation": "delete"})
