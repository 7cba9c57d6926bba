# api/fastapi_app/routes/tasks.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from app.schemas.task import (
    EmptyEnvelope,
    ErrorEnvelope,
    TaskEnvelope,
    TaskListEnvelope,
    TaskOut,
)
from app.services.task_controller import TaskController
from app.validation.tasks import (
    Invalid,
    ValidationResult,
    validate_create,
    validate_delete,
    validate_get,
    validate_list,
    validate_update,
)
from core.exceptions import ValidationFailed

from ..deps import get_controller

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={
        400: {"model": ErrorEnvelope},
        404: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)


# ---------- Validation stage ----------
# Run as dependencies, so a rejected request never reaches the handler.

def _ensure(result: ValidationResult) -> Dict[str, Any]:
    if isinstance(result, Invalid):
        raise ValidationFailed(result.errors)
    return result.data


def create_rules(payload: Optional[Dict[str, Any]] = Body(default=None)) -> Dict[str, Any]:
    return _ensure(validate_create(payload or {}))


def list_rules(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
) -> Dict[str, Any]:
    query = {"status": status_filter, "sortBy": sort_by}
    return _ensure(validate_list({k: v for k, v in query.items() if v is not None}))


def get_rules(task_id: str) -> Dict[str, Any]:
    return _ensure(validate_get(task_id))


def update_rules(
    task_id: str, payload: Optional[Dict[str, Any]] = Body(default=None)
) -> Dict[str, Any]:
    return _ensure(validate_update(task_id, payload or {}))


def delete_rules(task_id: str) -> Dict[str, Any]:
    return _ensure(validate_delete(task_id))


# ---------- Routes ----------

@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: Request,
    response: Response,
    data: Dict[str, Any] = Depends(create_rules),
    controller: TaskController = Depends(get_controller),
):
    """Create a task.

    Example::

        curl -X POST http://localhost:8000/api/tasks \
             -H 'Content-Type: application/json' \
             -d '{"title": "Write report", "dueDate": "2030-01-01T09:00:00Z"}'
    """
    task = await controller.create(data)
    response.headers["Location"] = f"{request.url.path.rstrip('/')}/{task.id}"
    return TaskEnvelope(data=TaskOut.model_validate(task))


@router.get("", response_model=TaskListEnvelope)
async def list_tasks(
    filters: Dict[str, Any] = Depends(list_rules),
    controller: TaskController = Depends(get_controller),
):
    """List tasks, optionally filtered by ``status`` and ordered by ``sortBy``
    (``createdAt``, ``dueDate``, ``title``; prefix with ``-`` for descending)."""
    tasks = await controller.list(status=filters.get("status"), sort_by=filters.get("sort_by"))
    return TaskListEnvelope(count=len(tasks), data=[TaskOut.model_validate(t) for t in tasks])


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(
    ids: Dict[str, Any] = Depends(get_rules),
    controller: TaskController = Depends(get_controller),
):
    task = await controller.get(ids["id"])
    return TaskEnvelope(data=TaskOut.model_validate(task))


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    data: Dict[str, Any] = Depends(update_rules),
    controller: TaskController = Depends(get_controller),
):
    """Partial update: only the fields present in the body change."""
    task = await controller.update(data["id"], data["patch"])
    return TaskEnvelope(data=TaskOut.model_validate(task))


@router.delete("/{task_id}", response_model=EmptyEnvelope)
async def delete_task(
    ids: Dict[str, Any] = Depends(delete_rules),
    controller: TaskController = Depends(get_controller),
):
    await controller.delete(ids["id"])
    return EmptyEnvelope()
