"""FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard import __version__
from taskboard.api.routes import auth, notifications, webhooks
from taskboard.core.config import get_settings
from taskboard.core.exceptions import APIException
from taskboard.core.logging import get_logger
from taskboard.storage.database.base import close_db

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info("application_starting", version=__version__, env=settings.app_env)
    yield
    await close_db()
    logger.info("application_shutting_down")


def setup_exception_handlers(app: FastAPI) -> None:
    """Render API exceptions as ``{success, message, errors}`` bodies."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("api_error", path=request.url.path, error=exc.message)
        else:
            logger.info(
                "api_request_rejected",
                path=request.url.path,
                status_code=exc.status_code,
                error=exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message, "errors": exc.details},
        )


app = FastAPI(
    title="Taskboard API",
    description="Task and project management API with notifications and webhooks",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Authorization"],
)

setup_exception_handlers(app)

# Include API routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(webhooks.router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": "Taskboard API",
        "version": __version__,
        "status": "running",
        "docs": "/api/docs",
    }


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
    }
