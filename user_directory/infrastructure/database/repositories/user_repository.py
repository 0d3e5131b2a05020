"""Concrete repository implementation for User backed by SQLAlchemy."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from user_directory.application.interfaces import UserRepository
from user_directory.domain.entities import User
from user_directory.domain.exceptions import DuplicateEntityError, InvalidEntityError
from user_directory.infrastructure.database.models import UserModel

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True when the store rejected a write because of a unique index."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == _UNIQUE_VIOLATION_SQLSTATE
    return "UNIQUE constraint failed" in str(orig)


class SQLAlchemyUserRepository(UserRepository):
    """Implements the UserRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: UserModel) -> User:
        """Map ORM model → domain entity."""
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            age=model.age,
            address=model.address,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: User) -> UserModel:
        """Map domain entity → ORM model (for creation)."""
        return UserModel(
            id=entity.id,
            name=entity.name,
            email=entity.email,
            age=entity.age,
            address=entity.address,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def get_by_id(self, user_id: str) -> User | None:
        result = await self._session.get(UserModel, user_id)
        return self._to_entity(result) if result else None

    async def find_by_email(
        self, email: str, *, exclude_id: str | None = None
    ) -> User | None:
        stmt = select(UserModel).where(UserModel.email == email)
        if exclude_id is not None:
            stmt = stmt.where(UserModel.id != exclude_id)
        result = await self._session.execute(stmt.limit(1))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_page(
        self,
        *,
        search: str | None = None,
        page: int = 1,
        limit: int = 5,
    ) -> tuple[list[User], int]:
        stmt = select(UserModel)
        count_stmt = select(func.count()).select_from(UserModel)

        if search:
            # Literal substring match: % and _ in the term are escaped
            criteria = or_(
                UserModel.name.icontains(search, autoescape=True),
                UserModel.email.icontains(search, autoescape=True),
                UserModel.address.icontains(search, autoescape=True),
            )
            stmt = stmt.where(criteria)
            count_stmt = count_stmt.where(criteria)

        total = (await self._session.execute(count_stmt)).scalar_one()

        # Both bounds are kept within total so any page/limit fits the driver's integer
        offset = (page - 1) * limit
        if offset >= total:
            return [], total

        stmt = (
            stmt.order_by(UserModel.created_at.asc(), UserModel.id.asc())
            .offset(offset)
            .limit(min(limit, total))
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()], total

    async def create(self, user: User) -> User:
        model = self._to_model(user)
        self._session.add(model)
        await self._flush(user.email)
        return self._to_entity(model)

    async def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        model = await self._session.get(UserModel, user_id)
        if model is None:
            return None
        for key, value in fields.items():
            setattr(model, key, value)
        model.updated_at = datetime.now(timezone.utc)
        await self._flush(fields.get("email", model.email))
        return self._to_entity(model)

    async def delete(self, user_id: str) -> User | None:
        model = await self._session.get(UserModel, user_id)
        if model is None:
            return None
        removed = self._to_entity(model)
        await self._session.delete(model)
        await self._session.flush()
        return removed

    async def _flush(self, email: str) -> None:
        """Flush pending writes, translating store rejections into domain errors."""
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            if _is_unique_violation(exc):
                logger.warning("Unique index rejected email '%s'", email)
                raise DuplicateEntityError("User", "email", email) from exc
            raise InvalidEntityError("User", str(exc.orig)) from exc
        except DataError as exc:
            await self._session.rollback()
            raise InvalidEntityError("User", str(exc.orig)) from exc
