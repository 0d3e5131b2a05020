from .user import (
    ErrorResponse,
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "ErrorResponse",
    "UserCreate",
    "UserEnvelope",
    "UserListResponse",
    "UserResponse",
    "UserUpdate",
]
