"""Application service (use case) for User operations."""

import logging
from typing import Any

from user_directory.application.interfaces import UserRepository
from user_directory.application.schemas.user import UserCreate, UserUpdate
from user_directory.domain.entities import User, UserPage
from user_directory.domain.exceptions import DuplicateEntityError, EntityNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 5


class UserService:
    """Orchestrates user directory logic. Depends on the repository port (DI).

    Email uniqueness is checked here before every write so that the common
    conflict is reported without touching the table; the repository still
    maps unique-index rejections to the same DuplicateEntityError for the
    concurrent case.
    """

    def __init__(self, repository: UserRepository, default_limit: int = DEFAULT_PAGE_LIMIT):
        self._repository = repository
        self._default_limit = default_limit

    async def get_user(self, user_id: str) -> User:
        user = await self._repository.get_by_id(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    async def list_users(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
    ) -> UserPage:
        """Return one page of users, optionally filtered by a substring search.

        ``page`` and ``limit`` fall back to 1 and the default limit when
        missing or zero, and are floored at 1.
        """
        page = max(1, page or 1)
        limit = max(1, limit or self._default_limit)
        term = search.strip() if search else ""

        users, total = await self._repository.find_page(
            search=term or None, page=page, limit=limit
        )
        return UserPage(users=users, total=total, page=page, limit=limit)

    async def create_user(self, data: UserCreate) -> User:
        user = User(
            name=data.name,
            email=data.email,
            age=data.age,
            address=data.address,
        )
        await self._ensure_email_available(user.email)
        created = await self._repository.create(user)
        logger.info("Created user %s <%s>", created.id, created.email)
        return created

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        # UserUpdate has already normalized the email and trimmed text fields
        fields: dict[str, Any] = data.supplied_fields()
        if "email" in fields:
            await self._ensure_email_available(fields["email"], exclude_id=user_id)

        updated = await self._repository.update(user_id, fields)
        if updated is None:
            raise EntityNotFoundError("User", user_id)
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)) or "no fields")
        return updated

    async def delete_user(self, user_id: str) -> User:
        removed = await self._repository.delete(user_id)
        if removed is None:
            raise EntityNotFoundError("User", user_id)
        logger.info("Deleted user %s <%s>", removed.id, removed.email)
        return removed

    async def _ensure_email_available(
        self, email: str, *, exclude_id: str | None = None
    ) -> None:
        existing = await self._repository.find_by_email(email, exclude_id=exclude_id)
        if existing is not None:
            logger.warning("Email '%s' already belongs to user %s", email, existing.id)
            raise DuplicateEntityError("User", "email", email)
