"""User directory CRUD endpoints.

Domain errors raised by the service are not caught here; the handlers in
``presentation.api.error_handlers`` turn them into ``{message}`` responses.
"""

import re

from fastapi import APIRouter, Depends, Query, status

from user_directory.application.schemas import (
    ErrorResponse,
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from user_directory.application.services import UserService
from user_directory.infrastructure.dependencies import get_user_service

router = APIRouter(prefix="/users", tags=["Users"])

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
_CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}
_INVALID = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def _parse_int(raw: str | None) -> int | None:
    """Lenient query-int parsing from the leading digits of ``raw``.

    ``"2abc"`` reads as 2 and ``"1.5"`` as 1; values with no leading
    integer fall back to the default.
    """
    match = _LEADING_INT.match(raw) if raw is not None else None
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # Beyond the interpreter's int-string digit limit
        return None


@router.get("", response_model=UserListResponse)
async def list_users(
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Records per page"),
    search: str | None = Query(None, description="Substring of name, email or address"),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """Retrieve a paginated, optionally filtered list of users."""
    result = await service.list_users(
        page=_parse_int(page), limit=_parse_int(limit), search=search
    )
    users = [UserResponse.model_validate(u, from_attributes=True) for u in result.users]
    return UserListResponse(
        users=users,
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        data=users,
    )


@router.get("/{user_id}", response_model=UserEnvelope, responses=_NOT_FOUND)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """Retrieve a single user by ID."""
    user = await service.get_user(user_id)
    return UserEnvelope(
        message="User retrieved successfully",
        data=UserResponse.model_validate(user, from_attributes=True),
    )


@router.post(
    "",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={**_INVALID, **_CONFLICT},
)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """Create a new user. The email must not belong to another user."""
    user = await service.create_user(data)
    return UserEnvelope(
        message="User created successfully",
        data=UserResponse.model_validate(user, from_attributes=True),
    )


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """Update the supplied fields of an existing user."""
    user = await service.update_user(user_id, data)
    return UserEnvelope(
        message="User updated successfully",
        data=UserResponse.model_validate(user, from_attributes=True),
    )


@router.delete("/{user_id}", response_model=UserEnvelope, responses=_NOT_FOUND)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """Delete a user by ID and return the removed record."""
    user = await service.delete_user(user_id)
    return UserEnvelope(
        message="User deleted successfully",
        data=UserResponse.model_validate(user, from_attributes=True),
    )
