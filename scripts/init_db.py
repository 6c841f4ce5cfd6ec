#!/usr/bin/env python
"""
Script untuk inisialisasi database ContextAuth API.
Membuat tabel users dan memverifikasi kolom trust store serta slot token.
Usage: python scripts/init_db.py [--drop]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import inspect

from contextauth.core.config import settings
from contextauth.db.base import Base
from contextauth.db.session import engine, init_db, close_db
from contextauth.models.user import TOKEN_SLOT_COLUMNS, User

# Configure logging
logging.basicConfig(level=logging.INFO, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


async def drop_tables() -> None:
    """Drop semua tabel (hanya untuk development)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Dropped all database tables")


async def verify_tables() -> bool:
    """Pastikan tabel users memiliki semua kolom yang dibutuhkan."""
    required_columns = {column.name for column in User.__table__.columns}
    for digest_column, expires_column in TOKEN_SLOT_COLUMNS.values():
        required_columns.update({digest_column, expires_column})

    async with engine.connect() as conn:
        existing_columns = await conn.run_sync(
            lambda sync_conn: {col["name"] for col in inspect(sync_conn).get_columns(User.__tablename__)}
        )

    missing = required_columns - existing_columns
    if missing:
        logger.warning(f"Missing columns on {User.__tablename__}: {sorted(missing)}")
        return False

    logger.info(f"Table {User.__tablename__} has {len(existing_columns)} columns")
    return True


async def main(drop: bool) -> None:
    """Main initialization function."""
    logger.info(f"=== {settings.APP_NAME} Database Initialization ===")

    try:
        if drop:
            if settings.ENVIRONMENT == "production":
                logger.error("Refusing to drop tables in production")
                sys.exit(1)
            await drop_tables()

        await init_db(create_tables=True)

        if not await verify_tables():
            raise RuntimeError("Table verification failed")

        logger.info("Database initialization completed successfully")
        logger.info("Start the API with 'uvicorn contextauth.main:app --reload'")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the ContextAuth database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    asyncio.run(main(args.drop))
