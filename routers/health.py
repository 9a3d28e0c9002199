# routers/health.py

from fastapi import APIRouter, Depends

from core.config import settings
from core.errors import extract_store_error
from core.logging_config import logger
from core.store import Store
from dependencies.store import get_store

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks the store connection + table queries
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Store / DB health check")
async def health_db(store: Store = Depends(get_store)):
    """
    Pings every core table and returns row-count + error details per table.
    Safe for external health monitors (no auth required).
    """
    try:
        status = store.ping()
        return {
            "service": status.get("service", type(store).__name__),
            "status": status.get("status", "unknown"),
            "details": status,
        }

    except Exception as e:
        logger.error(f"Health check failed: {extract_store_error(e)}")
        return {
            "service": type(store).__name__,
            "status": "error",
            "error": extract_store_error(e),
        }


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }
