from fastapi import APIRouter, Depends

from core.storage.task_store import TaskStore

from ..deps import get_store

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def healthcheck(store: TaskStore = Depends(get_store)):
    try:
        await store.ping()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        return {"status": "degraded", "db": str(e)}
