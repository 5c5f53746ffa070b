"""Trip Coordination Engine: FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before other tripcoord imports; structlog caches
# the processor chain on first use.
from tripcoord.core.logging import configure_structlog
from tripcoord.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else _early_settings.log_level,
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tripcoord.api.routes import api_router
from tripcoord.core.config import get_settings
from tripcoord.db.store import DocumentStore, close_store, open_store
from tripcoord.middleware.correlation import get_correlation_id, setup_correlation_middleware

logger = structlog.get_logger(__name__)


def build_lifespan(store: DocumentStore | None):
    """Lifespan that opens the Redis store at startup unless one was injected."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

        owned = store is None
        app.state.store = await open_store(settings.redis_url, settings.store_key_prefix) if owned else store
        logger.info("store_initialized", injected=not owned)

        yield

        logger.info("shutdown_begin")
        if owned:
            await close_store(app.state.store)
        logger.info("shutdown_complete")

    return lifespan


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException -> ``{"detail", "debug_id"}``, logged with request context."""
    debug_id = str(uuid.uuid4())

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        detail=exc.detail,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs full exception with traceback, returns generic 500 to client.
    """
    debug_id = str(uuid.uuid4())

    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def create_app(store: DocumentStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Document store to serve from. When omitted, a Redis store is
            opened from settings at startup and closed at shutdown.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Group trip coordination: stages, readiness and dashboard",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=build_lifespan(store),
    )

    if store is not None:
        app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted({settings.frontend_url, *settings.allowed_origins}),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Runs first on incoming requests
    setup_correlation_middleware(app)

    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tripcoord.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
