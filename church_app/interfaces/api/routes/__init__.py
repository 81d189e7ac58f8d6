from fastapi import FastAPI

from .notifications import router as notifications_router
from .preferences import router as preferences_router
from .push import router as push_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    # Fixed paths first so they are not shadowed by ``/notifications/{id}/...``.
    app.include_router(preferences_router)
    app.include_router(push_router)
    app.include_router(notifications_router)
