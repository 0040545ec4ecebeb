"""
Cohete Workflow API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.ai.client import AIProviderError
from app.core.config import get_settings
from app.core.database import ping_database
from app.core.middleware import (
    CSRFMiddleware,
    SecurityHeadersMiddleware,
    UploadSizeLimitMiddleware,
)
from app.core.redis import close_redis, ping_redis
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cohete Workflow",
        description="Marketing agency workspace: brand analysis, AI content schedules and tasks.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(UploadSizeLimitMiddleware, max_bytes=settings.max_upload_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )

    @app.exception_handler(AIProviderError)
    async def ai_provider_error_handler(request: Request, exc: AIProviderError):
        log.error(
            "ai.request_failed",
            path=request.url.path,
            error_type=exc.error_type.value,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness checks."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: database and Redis must answer."""
        checks = {
            "database": await ping_database(),
            "redis": await ping_redis(),
        }
        ready = all(checks.values())
        return JSONResponse(
            status_code=200 if ready else 503,
            content={"status": "ready" if ready else "unavailable", "checks": checks},
        )

    @app.on_event("startup")
    async def on_startup():
        log.info("Cohete Workflow starting", environment=settings.environment, ai_provider=settings.ai_provider)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Cohete Workflow shutting down")
        await close_redis()

    return app


app = create_app()
