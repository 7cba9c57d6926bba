# api/fastapi_app/app.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

# Load .env as early as possible
from dotenv import load_dotenv
load_dotenv()

from core.log import configure_logging

from .deps import settings
from .middleware import RequestIDMiddleware
from .routes import health, tasks
from .utils.error_handlers import setup_error_handlers
from core.storage.task_store import TaskStore

configure_logging(settings.log_level)
log = logging.getLogger("api")

TAGS_METADATA = [
    {"name": "health", "description": "Healthcheck and database availability."},
    {"name": "tasks", "description": "Create, list, read, update and delete tasks."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # one store (engine + pool) for the whole process
    store = TaskStore(settings.database_url, echo=settings.db_echo)
    if settings.create_schema:
        await store.create_all()
    app.state.task_store = store
    log.info("task store ready")
    try:
        yield
    finally:
        await store.dispose()
        log.info("task store closed")


app = FastAPI(
    title="Task Service API",
    version="0.1.0",
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
)

# -------- Middlewares --------
app.add_middleware(RequestIDMiddleware)                # X-Request-ID propagation + access log

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "X-Request-ID"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

setup_error_handlers(app)

# -------- Routes --------
app.include_router(health.router)
app.include_router(tasks.router, prefix=settings.api_prefix)


# Redirect to Swagger
@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")
