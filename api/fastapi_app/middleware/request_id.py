from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from core.log import request_id_var
from ..utils.error_handlers import error_response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and log every response in JSON format.

    Exceptions that escaped the route handlers are turned into the uniform
    500 body here, so nothing reaches the server uncaught.
    """

    def __init__(self, app):
        super().__init__(app)
        # Dedicated logger so uvicorn's access formatter is untouched
        self.logger = logging.getLogger("api.access")

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        token = request_id_var.set(rid)
        start = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                response = error_response(request, exc)
            duration_ms = int((time.perf_counter() - start) * 1000)
            response.headers["X-Request-ID"] = rid
            self.logger.info(
                "access",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response
        finally:
            request_id_var.reset(token)
