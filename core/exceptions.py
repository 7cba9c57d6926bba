from __future__ import annotations

from typing import Any, Dict, Sequence


class AppError(Exception):
    """Base for tagged application errors.

    Each subclass carries a stable ``kind`` tag and the HTTP status it maps
    to. ``client_message`` is what a caller is allowed to see.
    """

    kind: str = "unclassified"
    http_status: int = 500

    def __init__(self, message: str, *, details: Any | None = None):
        super().__init__(message)
        self.details = details

    @property
    def client_message(self) -> str:
        return str(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {"message": self.client_message, "code": self.http_status},
        }


def _join(messages: Sequence[str]) -> str:
    return ". ".join(m.rstrip(".") for m in messages)


class ConstraintViolation(AppError):
    """A write broke one or more field constraints of the Task entity."""

    kind = "constraint_violation"
    http_status = 400

    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__(f"Invalid input data. {_join(self.messages)}")


class DuplicateValue(AppError):
    kind = "duplicate_value"
    http_status = 400

    def __init__(self, field: str | None, value: Any | None):
        self.field = field
        self.value = value
        shown = value if value is not None else "duplicate value"
        super().__init__(f"Duplicate field value: {shown}. Please use another value!")


class InvalidIdentifier(AppError):
    kind = "invalid_identifier"
    http_status = 400

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value}")


class ValidationFailed(AppError):
    """Raised by the request validation stage, before any controller runs."""

    kind = "validation_failed"
    http_status = 400

    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__(f"Validation failed. {_join(self.messages)}")


class NotFound(AppError):
    kind = "not_found"
    http_status = 404


class Unclassified(AppError):
    """Any failure without a client-facing meaning. Details stay in the logs."""

    kind = "unclassified"
    http_status = 500
    generic_message = "Something went wrong!"

    @property
    def client_message(self) -> str:
        return self.generic_message


class PersistenceError(Unclassified):
    """The database rejected or failed a statement."""


class PersistenceTimeout(Unclassified):
    """A store call exceeded its bounded wait."""
