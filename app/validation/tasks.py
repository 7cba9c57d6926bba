"""Request rule sets for the task endpoints.

Each rule set validates the raw request data with a pydantic model and
returns either ``Valid`` (the sanitised data, keyed by column name) or
``Invalid`` (one message per failed field, in field order). Nothing here
raises; the router turns an ``Invalid`` into a ``ValidationFailed`` error
before any controller runs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Dict, Iterable, List, Literal, Mapping, Optional, Type, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from app.models.task import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    TaskStatus,
    parse_task_id,
)

SORT_CHOICES = ("createdAt", "dueDate", "title", "-createdAt", "-dueDate", "-title")

TITLE_LENGTH_MESSAGE = f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
DESCRIPTION_LENGTH_MESSAGE = f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
STATUS_MESSAGE = "Status must be pending, in-progress, or completed"
DUE_DATE_INVALID_MESSAGE = "Due date must be a valid date"


@dataclass(frozen=True)
class Valid:
    data: Dict[str, Any] = field(default_factory=dict)
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    errors: List[str]
    ok: bool = False


ValidationResult = Union[Valid, Invalid]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Due date type ----------

def _iso_string(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("required", "Field required")
    if not isinstance(value, str):
        # no unix timestamps: ISO-8601 text only
        raise PydanticCustomError("datetime_type", "Input should be an ISO-8601 string")
    return value.strip()


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        raise PydanticCustomError(
            "datetime_range", "Input is outside the supported date range"
        ) from None


DueDate = Annotated[datetime, BeforeValidator(_iso_string), AfterValidator(_to_utc)]

_due_date_adapter: TypeAdapter[datetime] = TypeAdapter(DueDate)


def parse_iso8601(value: Any) -> datetime:
    """Parse an ISO-8601 date or date-time into an aware UTC datetime.

    Naive values are read as UTC. Raises ``ValueError`` (pydantic's
    ``ValidationError``) for anything else.
    """
    return _due_date_adapter.validate_python(value)


# ---------- Models ----------

class TaskUpdateIn(BaseModel):
    """Update body: every field optional, each checked when present."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(default=None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = Field(default=None)
    due_date: DueDate = Field(default=None, alias="dueDate")

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise PydanticCustomError("required", "Field required")
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def _strip_desc(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("due_date")
    @classmethod
    def _not_in_past(cls, v: datetime, info: ValidationInfo) -> datetime:
        now: Callable[[], datetime] = (info.context or {}).get("now", _utcnow)
        if v < now():
            raise PydanticCustomError("date_in_past", "Due date cannot be in the past")
        return v


class TaskCreateIn(TaskUpdateIn):
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    due_date: DueDate = Field(alias="dueDate")


class TaskListQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: Optional[TaskStatus] = None
    sort_by: Optional[Literal[SORT_CHOICES]] = Field(default=None, alias="sortBy")  # type: ignore[valid-type]


# ---------- Error messages ----------

def _body_message(loc: str, err_type: str, required: bool) -> str:
    absent = err_type in ("missing", "required")
    if loc == "title":
        return "Title is required" if required and absent else TITLE_LENGTH_MESSAGE
    if loc == "description":
        return DESCRIPTION_LENGTH_MESSAGE
    if loc == "status":
        return STATUS_MESSAGE
    if err_type == "date_in_past":
        return "Due date cannot be in the past"
    return "Due date is required" if required and absent else DUE_DATE_INVALID_MESSAGE


_LIST_MESSAGES = {"status": "Invalid status filter", "sortBy": "Invalid sort field"}


def _messages(exc: ValidationError, order: Iterable[str], message) -> List[str]:
    """First error per field, in ``order``."""
    first: Dict[str, str] = {}
    for err in exc.errors():
        loc = str(err["loc"][0]) if err["loc"] else ""
        first.setdefault(loc, message(loc, err["type"]))
    return [first[loc] for loc in order if loc in first]


def _validate_body(
    model: Type[TaskUpdateIn], body: Any, now: Callable[[], datetime]
) -> ValidationResult:
    source = body if isinstance(body, Mapping) else {}
    required = model is TaskCreateIn
    try:
        parsed = model.model_validate(source, context={"now": now})
    except ValidationError as e:
        return Invalid(
            _messages(
                e,
                ("title", "description", "status", "dueDate"),
                lambda loc, err_type: _body_message(loc, err_type, required),
            )
        )
    return Valid(parsed.model_dump(exclude_unset=True))


# ---------- Rule sets ----------

def validate_create(body: Any, *, now: Callable[[], datetime] = _utcnow) -> ValidationResult:
    return _validate_body(TaskCreateIn, body, now)


def validate_task_id(task_id: Any) -> ValidationResult:
    try:
        return Valid({"id": parse_task_id(task_id)})
    except ValueError:
        return Invalid(["Invalid task ID"])


def validate_update(
    task_id: Any, body: Any, *, now: Callable[[], datetime] = _utcnow
) -> ValidationResult:
    id_result = validate_task_id(task_id)
    body_result = _validate_body(TaskUpdateIn, body, now)
    errors = (id_result.errors if isinstance(id_result, Invalid) else []) + (
        body_result.errors if isinstance(body_result, Invalid) else []
    )
    if errors:
        return Invalid(errors)
    return Valid({**id_result.data, "patch": body_result.data})


# getOne and delete share the id rule
validate_get = validate_task_id
validate_delete = validate_task_id


def validate_list(query: Mapping[str, Any]) -> ValidationResult:
    try:
        parsed = TaskListQuery.model_validate(query)
    except ValidationError as e:
        return Invalid(_messages(e, ("status", "sortBy"), lambda loc, _t: _LIST_MESSAGES[loc]))
    return Valid(parsed.model_dump(exclude_unset=True))
