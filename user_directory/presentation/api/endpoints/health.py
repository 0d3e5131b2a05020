"""Health check endpoint: reports app metadata and store reachability."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from user_directory.config import get_settings
from user_directory.infrastructure.database.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_db_session)) -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        database = "unreachable"
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "version": settings.app_version,
        "environment": settings.app_env,
    }
