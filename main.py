import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from church_app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationStore,
    PushDeliveryService,
)
from church_app.config import get_settings
from church_app.infrastructure.database import engine, initialize_database
from church_app.infrastructure.notifications import (
    BackgroundTaskRunner,
    NotificationConnectionManager,
)
from church_app.interfaces.api.routes import register_routes

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables and the notification services; release them on shutdown."""

    settings = get_settings()
    initialize_database()

    store = NotificationStore()
    manager = NotificationConnectionManager.from_settings(store, settings)
    push_service = PushDeliveryService.from_settings(settings)
    runner = BackgroundTaskRunner()

    app.state.notification_store = store
    app.state.connection_manager = manager
    app.state.push_service = push_service
    app.state.notification_dispatcher = NotificationDispatcher(
        store, manager, push_service, runner
    )
    logger.info("Notification services ready (push configured: %s)", push_service.is_configured())
    try:
        yield
    finally:
        manager.close_all()
        runner.cancel_all()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="Church notifications", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    register_routes(app)
    return app


app = create_app()
