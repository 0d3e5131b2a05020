"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from user_directory.config import get_settings
from user_directory.infrastructure.database import Base, engine
from user_directory.infrastructure.logging.log_config import setup_logging
from user_directory.presentation.api.error_handlers import register_exception_handlers
from user_directory.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing.
    Other backends are left alone.
    """
    from urllib.parse import urlparse

    settings = get_settings()
    if not settings.database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        return

    import asyncpg

    plain_url = settings.database_url.replace("postgresql+asyncpg://", "postgresql://", 1)
    db_name = urlparse(plain_url).path.lstrip("/")
    if not db_name:
        return

    maintenance_url = plain_url.rsplit("/", 1)[0] + "/postgres"

    try:
        conn = await asyncpg.connect(
            maintenance_url, timeout=settings.database_connect_timeout
        )
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", db_name
            )
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        finally:
            await conn.close()
    except Exception as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: prepare the database before serving requests."""
    setup_logging()

    await _ensure_database_exists()

    # The unique email index must exist before the first write
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Database connection failed")
        raise
    logger.info("Connected to database, tables and indexes ready")

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "user_directory.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.app_env == "development",
    )
