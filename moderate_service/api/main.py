"""
FastAPI application for the Moderation Worker.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, Request

from joke_common.messaging import BrokerConnection, ReconnectSupervisor, RetryPolicy, subscribe_type_updates
from joke_common.rate_limit import close_rate_limiter, init_rate_limiter, rate_limit_dependencies
from joke_common.type_cache import TypeCache
from joke_common.utils.logging_utils import setup_logging
from joke_common.web import broker_state, configure_app, health_status, supervisor_state
from moderate_service.api.dependencies import get_moderator, is_authenticated, require_moderator
from moderate_service.api.endpoints import moderation
from moderate_service.config.settings import Settings, settings
from moderate_service.core.moderator import ModerationWorker

logger = logging.getLogger(__name__)


def build_topology(app_settings: Settings, type_cache: TypeCache):
    async def setup(broker: BrokerConnection) -> None:
        await broker.declare_queue(app_settings.SUBMITTED_QUEUE)
        await broker.declare_queue(app_settings.MODERATED_QUEUE)
        await subscribe_type_updates(
            broker,
            app_settings.TYPE_UPDATE_QUEUE,
            app_settings.TYPE_UPDATE_EXCHANGE,
            type_cache.apply_event,
        )
        logger.info(f"Fetching from {app_settings.SUBMITTED_QUEUE}, publishing to {app_settings.MODERATED_QUEUE}")

    return setup


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(app_settings.LOGGING_CONFIG_PATH)
        logger.info(f"Starting {app_settings.APP_NAME} v{app_settings.APP_VERSION}")
        if not app_settings.MODERATOR_API_TOKEN:
            logger.warning("MODERATOR_API_TOKEN is not set - moderation routes are open")

        type_cache = TypeCache(app_settings.TYPES_CACHE_PATH)
        broker = BrokerConnection(app_settings.RABBITMQ_URL, app_settings.BROKER_PREFETCH_COUNT)
        app.state.moderator = ModerationWorker(
            broker,
            type_cache,
            app_settings.SUBMITTED_QUEUE,
            app_settings.MODERATED_QUEUE,
        )

        supervisor = ReconnectSupervisor(
            broker,
            build_topology(app_settings, type_cache),
            RetryPolicy(
                interval_seconds=app_settings.RECONNECT_INTERVAL_SECONDS,
                jitter_seconds=app_settings.RECONNECT_JITTER_SECONDS,
                max_attempts=app_settings.RECONNECT_MAX_ATTEMPTS,
            ),
        )
        supervisor.start()
        app.state.supervisor = supervisor
        limiter_redis = await init_rate_limiter(app_settings)

        yield

        logger.info("Shutting down application")
        await close_rate_limiter(limiter_redis)
        await supervisor.stop()

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Moderate submitted jokes. Approved jokes are forwarded for storage.",
        debug=app_settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url="/redoc" if app_settings.DEBUG else None,
        openapi_tags=[
            {"name": "moderation", "description": "Moderation operations"},
            {"name": "health", "description": "Health check and monitoring"},
        ],
    )
    app.state.settings = app_settings
    configure_app(app, app_settings)
    app.include_router(moderation.router, tags=["moderation"], dependencies=rate_limit_dependencies(app_settings))

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(
        request: Request,
        moderator: ModerationWorker = Depends(get_moderator),
        authenticated: bool = Depends(is_authenticated),
    ) -> dict:
        """Public liveness check."""
        return {
            "status": health_status(request.app),
            "service": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "rabbitmq": broker_state(moderator.broker.is_connected),
            "brokerSupervisor": supervisor_state(request.app),
            "cachedTypes": len(moderator.type_cache),
            "authenticated": authenticated,
        }

    @app.get("/status", tags=["health"], summary="Detailed service status", dependencies=[Depends(require_moderator)])
    async def status(moderator: ModerationWorker = Depends(get_moderator)) -> dict:
        return {
            "status": "Moderate service running",
            "rabbitmq": broker_state(moderator.broker.is_connected),
            "cachedTypes": len(moderator.type_cache),
            "queues": {
                "submit": app_settings.SUBMITTED_QUEUE,
                "moderated": app_settings.MODERATED_QUEUE,
                "typeUpdate": app_settings.TYPE_UPDATE_QUEUE,
            },
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("moderate_service.api.main:app", host=settings.API_HOST, port=settings.API_PORT)
