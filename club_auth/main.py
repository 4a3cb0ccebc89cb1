"""
FastAPI application for the movie club identity service.

Run with ``club-auth`` (production) or ``club-auth-dev`` (auto-reload).
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from .api.auth import router as auth_router
from .api.errors import register_exception_handlers
from .core.config import settings
from .core.database import DatabaseHealthCheck, close_db_connections, create_tables
from .core.logging_config import configure_logging

configure_logging(settings.DEBUG)
logger = structlog.get_logger()

SERVICE_NAME = "club-auth"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Identity service starting", version=settings.VERSION, environment=settings.ENVIRONMENT)
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
    try:
        yield
    finally:
        await close_db_connections()
        logger.info("Identity service stopped")


def create_app() -> FastAPI:
    show_docs = settings.DEBUG
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Account creation, email verification, login, password reset and account deletion",
        version=settings.VERSION,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )

    if settings.BACKEND_CORS_ORIGINS:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )

    register_exception_handlers(application)
    application.include_router(auth_router, prefix=settings.API_V1_STR)
    return application


app = create_app()


@app.get("/health", tags=["health"])
async def health():
    """Liveness probe; does not touch the database."""
    return {"status": "healthy", "service": SERVICE_NAME, "version": settings.VERSION}


@app.get("/ready", tags=["health"])
async def ready():
    database_ok = await DatabaseHealthCheck.check_connection()
    payload = {
        "status": "ready" if database_ok else "not_ready",
        "checks": {"database": database_ok},
        "service": SERVICE_NAME,
    }
    code = status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=payload)


@app.get("/", tags=["root"])
async def root():
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "health_check": "/health",
        "readiness_check": "/ready",
    }


def _serve(reload: bool) -> None:
    uvicorn.run(
        "club_auth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=reload,
        log_level="debug" if settings.DEBUG else "info",
        access_log=reload,
    )


def run_dev():
    _serve(reload=True)


def run_prod():
    # request logging comes from structlog events
    _serve(reload=False)


if __name__ == "__main__":
    _serve(reload=settings.DEBUG)
