from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import AppError, Unclassified, ValidationFailed

log = logging.getLogger("api.error")

# Tags whose message may be shown to the client, in classification order.
CLIENT_KINDS = (
    "constraint_violation",
    "duplicate_value",
    "invalid_identifier",
    "validation_failed",
    "not_found",
)


def _body(message: str, code: int) -> Dict[str, Any]:
    return {"success": False, "error": {"message": message, "code": code}}


def translate(exc: BaseException) -> Tuple[int, Dict[str, Any]]:
    """Map a failure to ``(status_code, body)``. Never raises."""
    kind = getattr(exc, "kind", None)
    if kind in CLIENT_KINDS:
        return exc.http_status, exc.to_dict()  # type: ignore[attr-defined]
    return 500, _body(Unclassified.generic_message, 500)


def error_response(request: Request, exc: BaseException) -> JSONResponse:
    status_code, body = translate(exc)
    rid = getattr(request.state, "request_id", None)
    if status_code >= 500:
        # full detail goes to the logs only
        log.error(
            "unclassified_error: %s",
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"request_id": rid, "status_code": status_code},
        )
    else:
        log.warning(
            "%s: %s",
            getattr(exc, "kind", "error"),
            body["error"]["message"],
            extra={"request_id": rid, "status_code": status_code, "error_kind": getattr(exc, "kind", None)},
        )
    return JSONResponse(status_code=status_code, content=body)


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):  # type: ignore[override]
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):  # type: ignore[override]
        # unparseable or non-object bodies
        messages = [str(err.get("msg", "Invalid request")) for err in exc.errors()]
        return error_response(request, ValidationFailed(messages or ["Invalid request"]))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        rid = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            log.error("http_exception %s", exc.detail, extra={"request_id": rid})
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(str(exc.detail), exc.status_code),
            headers=getattr(exc, "headers", None),
        )
