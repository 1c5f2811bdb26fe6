"""Postgres pool and schema management for the admins store."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from hco_backend.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

POOL_MIN_SIZE = 2
POOL_MAX_SIZE = 10
COMMAND_TIMEOUT_SECONDS = 60

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the shared pool.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> None:
    """Open the shared pool against POSTGRES_URL. A second call is a no-op."""
    global _pool

    if _pool is not None:
        return

    try:
        _pool = await asyncpg.create_pool(
            get_settings().postgres_url,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            command_timeout=COMMAND_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info("database_pool_created", min_size=POOL_MIN_SIZE, max_size=POOL_MAX_SIZE)


async def close_database() -> None:
    global _pool

    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("database_pool_closed")


def pending_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    """SQL files in apply order (by file name)."""
    if not migrations_dir.is_dir():
        return []
    return sorted(migrations_dir.glob("*.sql"))


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """Apply every migration file in one connection.

    Files use IF NOT EXISTS DDL, so they are re-run on every startup.
    """
    files = pending_migrations(migrations_dir)
    if not files:
        logger.warning("no_migrations_found", path=str(migrations_dir))
        return

    pool = await get_pool()
    async with pool.acquire() as conn:
        for path in files:
            try:
                await conn.execute(path.read_text())
            except Exception as e:
                logger.error("migration_failed", file=path.name, error=str(e))
                raise
            logger.info("migration_applied", file=path.name)


async def health_check() -> bool:
    """True when the pool answers and the admins table exists."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            table = await conn.fetchval("SELECT to_regclass('public.admins') IS NOT NULL")
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False

    if not table:
        logger.warning("database_health_check_failed", error="admins table missing")
    return bool(table)
