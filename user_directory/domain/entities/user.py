"""Domain entity — pure Python business object for a directory user."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from user_directory.domain.exceptions import InvalidEntityError


def normalize_email(email: str | None) -> str:
    """Lowercase and trim an email; the result is the uniqueness key.

    Raises InvalidEntityError when nothing is left after trimming.
    """
    normalized = email.strip().lower() if email else ""
    if not normalized:
        raise InvalidEntityError("User", "email is required")
    return normalized


def clean_text(value: str | None) -> str | None:
    """Trim surrounding whitespace from an optional text field."""
    return value.strip() if value is not None else None


@dataclass
class User:
    """Core domain entity representing one record in the directory."""

    email: str
    name: str | None = None
    age: float | None = None
    address: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)
        self.name = clean_text(self.name)
        self.address = clean_text(self.address)


@dataclass
class UserPage:
    """One page of a filtered user listing."""

    users: list[User]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)
