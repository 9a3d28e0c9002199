from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core
from core.config import settings
from core.errors import ERROR_MESSAGES, ErrorCode, validation_details
from core.logging_config import logger
from core.store import InMemoryStore, Store
from core.supabase_client import get_supabase_client
from core.supabase_store import SupabaseStore

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.permissions import router as permissions_router
from routers.buildings import router as buildings_router
from routers.apartments import router as apartments_router
from routers.water_meters import router as water_meters_router
from routers.invite_codes import router as invite_codes_router
from routers.dashboard import router as dashboard_router
from routers.health import router as health_router


def default_store() -> Store:
    """Supabase when configured, otherwise a process-local in-memory store."""
    client = get_supabase_client()
    if client is not None:
        return SupabaseStore(client)

    logger.warning("Supabase is not configured, using the in-memory store (data is not persisted)")
    return InMemoryStore()


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(store: Optional[Store] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Habitat API: buildings, apartments, water meters and owner invite codes",
    )

    app.state.store = store if store is not None else default_store()

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup logging
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV}) with {type(app.state.store).__name__}")
        # Included routers are not always flattened into app.routes
        for path, operations in app.openapi().get("paths", {}).items():
            methods = ",".join(sorted(method.upper() for method in operations))
            logger.debug(f"{methods:10s} {path}")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )

        # Service failures already carry the {success, error, code} shape
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = {"success": False, "error": exc.detail, "detail": exc.detail}

        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": ERROR_MESSAGES[ErrorCode.VALIDATION_FAILED],
                "code": ErrorCode.VALIDATION_FAILED.value,
                "details": validation_details(exc),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR],
                "code": ErrorCode.INTERNAL_ERROR.value,
            },
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Auth
    app.include_router(auth_router)
    app.include_router(permissions_router)

    # Core Data Routers
    app.include_router(buildings_router)
    app.include_router(apartments_router)
    app.include_router(water_meters_router)
    app.include_router(invite_codes_router)
    app.include_router(dashboard_router)

    # Health
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
