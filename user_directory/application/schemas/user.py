"""Pydantic DTOs (Data Transfer Objects) for the User feature.

Request schemas are the validation boundary of the API: emails are
normalized and text fields trimmed here, before anything reaches the
service or the store.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from user_directory.domain.entities import clean_text, normalize_email
from user_directory.domain.exceptions import InvalidEntityError


def _validate_email(value: Any) -> Any:
    if value is not None and not isinstance(value, str):
        return value
    try:
        return normalize_email(value)
    except InvalidEntityError as exc:
        raise ValueError(exc.message) from exc


class UserCreate(BaseModel):
    """Schema for creating a new user. Only email is required."""

    name: str | None = Field(None, examples=["Nguyen Van A"])
    email: str = Field(..., max_length=320, examples=["a@example.com"])
    age: int | float | None = Field(None, examples=[21])
    address: str | None = Field(None, examples=["Hanoi"])

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _validate_email(value)

    @field_validator("name", "address")
    @classmethod
    def trim_text(cls, value: str | None) -> str | None:
        return clean_text(value)


class UserUpdate(BaseModel):
    """Schema for a partial update.

    Only keys present in the request body are written. An explicit ``null``
    clears name, age or address; email can never be cleared.
    """

    name: str | None = None
    email: str | None = Field(None, max_length=320)
    age: int | float | None = None
    address: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        # Defaults are not validated, so None here was sent explicitly
        return _validate_email(value)

    @field_validator("name", "address")
    @classmethod
    def trim_text(cls, value: str | None) -> str | None:
        return clean_text(value)

    def supplied_fields(self) -> dict[str, Any]:
        """Fields present in the request, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class UserResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    name: str | None
    email: str
    age: int | float | None
    address: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_serializer("age")
    def serialize_age(self, age: int | float | None) -> int | float | None:
        # The column is a float; whole numbers go back out as they came in
        if isinstance(age, float) and age.is_integer():
            return int(age)
        return age


class UserEnvelope(BaseModel):
    """A single user wrapped with a human-readable message."""

    message: str
    data: UserResponse


class UserListResponse(BaseModel):
    """One page of users.

    ``users`` and ``data`` carry the same list; both keys are kept for
    clients written against either.
    """

    users: list[UserResponse]
    total: int
    page: int
    total_pages: int
    data: list[UserResponse]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    message: str
    error: str | None = None
