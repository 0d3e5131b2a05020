"""Top-level API router — aggregates all endpoint routers under /api."""

from fastapi import APIRouter

from user_directory.presentation.api.endpoints.health import router as health_router
from user_directory.presentation.api.endpoints.users import router as users_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(users_router)
