"""
Database session management untuk ContextAuth API.
Menggunakan SQLAlchemy dengan async support.
"""

import logging
import time

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool
from sqlalchemy import event, text

from contextauth.core.config import settings

logger = logging.getLogger(__name__)


def create_engine() -> AsyncEngine:
    """
    Create async SQLAlchemy engine dengan konfigurasi optimal.

    Returns:
        Configured AsyncEngine
    """
    database_url = str(settings.DATABASE_URL)

    engine_args = {
        "echo": settings.DEBUG,
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
    }

    if settings.ENVIRONMENT == "test":
        # Use NullPool for testing to avoid connection issues
        engine_args["poolclass"] = NullPool
    else:
        engine_args["pool_size"] = settings.DB_POOL_SIZE
        engine_args["max_overflow"] = settings.DB_MAX_OVERFLOW
        engine_args["pool_timeout"] = 30
        engine_args["pool_recycle"] = 3600

        if database_url.startswith("postgresql+asyncpg"):
            engine_args["connect_args"] = {
                "server_settings": {
                    "application_name": settings.APP_NAME,
                    "jit": "off",
                },
                "command_timeout": 60,
                "prepared_statement_cache_size": 0,
            }

    engine = create_async_engine(database_url, **engine_args)

    if settings.DEBUG:
        @event.listens_for(engine.sync_engine, "connect")
        def receive_connect(dbapi_connection, connection_record):
            """Log new connections."""
            logger.debug(f"New database connection established: {connection_record}")

    return engine


# Create global engine instance
engine = create_engine()

# Create session factory
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autoflush=False,
)


async def init_db(create_tables: bool = False) -> None:
    """
    Initialize database.
    - Test connection
    - Optionally create tables dari metadata

    Args:
        create_tables: Jalankan Base.metadata.create_all
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection successful")

            if create_tables:
                from contextauth.db.base import Base
                import contextauth.models  # noqa: F401  register models

                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created")

        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def check_database_health(session: AsyncSession) -> dict:
    """
    Check database health dan return metrics.

    Args:
        session: Database session

    Returns:
        Dictionary dengan health metrics
    """
    health_info = {
        "connected": False,
        "response_time_ms": None,
        "error": None
    }

    try:
        start_time = time.time()
        result = await session.execute(text("SELECT 1"))
        result.scalar()

        health_info["connected"] = True
        health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)

    except Exception as e:
        health_info["error"] = str(e)
        logger.error(f"Database health check failed: {e}")

    return health_info
