"""
Main application entry point untuk ContextAuth API.
Mengkonfigurasi FastAPI application dengan semua middleware, routers, dan handlers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from contextauth.core.config import settings
from contextauth.db.session import init_db, close_db
from contextauth.api.dependencies.database import close_redis_pool
from contextauth.api.v1 import auth, health
from contextauth.middleware.security import SecurityHeadersMiddleware
from contextauth.middleware.logging import LoggingMiddleware
from contextauth.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        await init_db(create_tables=settings.ENVIRONMENT != "production")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    await close_redis_pool()
    await close_db()
    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Risk-based contextual authentication API",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    # Middleware dieksekusi dalam urutan terbalik dari penambahan
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.DEBUG)

    app.add_middleware(
        LoggingMiddleware,
        log_request_body=settings.DEBUG,
        exclude_paths=[f"{settings.API_V1_STR}/health"]
    )

    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=not settings.DEBUG
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    register_exception_handlers(app)

    app.include_router(health.router, prefix=settings.API_V1_STR)
    app.include_router(auth.router, prefix=settings.API_V1_STR)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "operational",
            "docs": "/docs" if settings.DEBUG else None
        }

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "contextauth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
