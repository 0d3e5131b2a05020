"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from user_directory.config import get_settings
from user_directory.application.services import UserService
from user_directory.infrastructure.database.session import get_db_session
from user_directory.infrastructure.database.repositories import SQLAlchemyUserRepository


async def get_user_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[UserService, None]:
    """Provides a UserService instance with its repository wired up."""
    repository = SQLAlchemyUserRepository(session)
    yield UserService(repository, default_limit=get_settings().default_page_limit)
