"""Exception handlers mapping domain errors to JSON ``{message}`` responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from user_directory.domain.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    InvalidEntityError,
)

logger = logging.getLogger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one line, e.g. ``email: Field required``."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain → HTTP error mapping to the application."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": _format_validation_errors(exc)},
        )

    @app.exception_handler(InvalidEntityError)
    async def handle_invalid_entity(_: Request, exc: InvalidEntityError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": str(exc)},
        )

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(_: Request, exc: EntityNotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": str(exc)},
        )

    @app.exception_handler(DuplicateEntityError)
    async def handle_duplicate(_: Request, exc: DuplicateEntityError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"message": str(exc)},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Server Error", "error": str(exc)},
        )
