"""Abstract repository interface (port) for User persistence."""

from abc import ABC, abstractmethod
from typing import Any

from user_directory.domain.entities import User


class UserRepository(ABC):
    """Port for user persistence — implemented in the infrastructure layer.

    Implementations own the email uniqueness contract: a write rejected by the
    store's unique index must surface as ``DuplicateEntityError``, and a write
    the store rejects for its shape as ``InvalidEntityError``.
    """

    @abstractmethod
    async def get_by_id(self, user_id: str) -> User | None:
        """Retrieve a single user by its UUID."""
        ...

    @abstractmethod
    async def find_by_email(
        self, email: str, *, exclude_id: str | None = None
    ) -> User | None:
        """Find the user owning a normalized email, optionally ignoring one id."""
        ...

    @abstractmethod
    async def find_page(
        self,
        *,
        search: str | None = None,
        page: int = 1,
        limit: int = 5,
    ) -> tuple[list[User], int]:
        """Return one page of users matching ``search`` and the total match count."""
        ...

    @abstractmethod
    async def create(self, user: User) -> User:
        """Persist a new user and return it."""
        ...

    @abstractmethod
    async def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Apply ``fields`` to a user. Returns None if the user does not exist."""
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> User | None:
        """Delete a user. Returns the removed user, or None if not found."""
        ...
