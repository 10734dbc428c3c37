"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from chatsync.api.routes.chats import router as chats_router
from chatsync.api.routes.health import router as health_router
from chatsync.api.routes.llms import router as llms_router
from chatsync.api.routes.metrics import router as metrics_router
from chatsync.api.routes.stores import router as stores_router
from chatsync.api.routes.workspace import router as workspace_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(stores_router)
    api_router.include_router(chats_router)
    api_router.include_router(llms_router)
    api_router.include_router(metrics_router)
    api_router.include_router(workspace_router)
    return api_router


__all__ = ["create_api_router"]
