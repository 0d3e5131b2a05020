from .user import User, UserPage, clean_text, normalize_email

__all__ = [
    "User",
    "UserPage",
    "clean_text",
    "normalize_email",
]
