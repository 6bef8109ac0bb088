"""
FastAPI application for the Submission Gateway.

The lifespan builds the Type Cache, the broker connection and the gateway, and
runs the reconnect supervisor in the background for the life of the process.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, Request

from joke_common.messaging import BrokerConnection, ReconnectSupervisor, RetryPolicy, subscribe_type_updates
from joke_common.type_cache import TypeCache
from joke_common.utils.logging_utils import setup_logging
from joke_common.web import broker_state, configure_app, health_status, supervisor_state
from submit_service.api.dependencies import get_gateway
from submit_service.api.endpoints import submit
from submit_service.config.settings import Settings, settings
from submit_service.core.gateway import SubmissionGateway

logger = logging.getLogger(__name__)


def build_topology(app_settings: Settings, type_cache: TypeCache):
    async def setup(broker: BrokerConnection) -> None:
        await broker.declare_queue(app_settings.SUBMITTED_QUEUE)
        await subscribe_type_updates(
            broker,
            app_settings.TYPE_UPDATE_QUEUE,
            app_settings.TYPE_UPDATE_EXCHANGE,
            type_cache.apply_event,
        )
        logger.info(f"Publishing to: {app_settings.SUBMITTED_QUEUE}")

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

        type_cache = TypeCache(app_settings.TYPES_CACHE_PATH)
        broker = BrokerConnection(app_settings.RABBITMQ_URL, app_settings.BROKER_PREFETCH_COUNT)
        app.state.gateway = SubmissionGateway(broker, type_cache, app_settings.SUBMITTED_QUEUE)

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

        yield

        logger.info("Shutting down application")
        await supervisor.stop()

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Submit new jokes. Jokes are queued for moderation.",
        debug=app_settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url="/redoc" if app_settings.DEBUG else None,
        openapi_tags=[
            {"name": "submit", "description": "Joke submission"},
            {"name": "health", "description": "Health check and monitoring"},
        ],
    )
    configure_app(app, app_settings)
    app.include_router(submit.router, tags=["submit"])

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(request: Request, gateway: SubmissionGateway = Depends(get_gateway)) -> dict:
        return {
            "status": health_status(request.app),
            "service": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "rabbitmq": broker_state(gateway.broker.is_connected),
            "brokerSupervisor": supervisor_state(request.app),
            "cachedTypes": len(gateway.type_cache),
        }

    @app.get("/status", tags=["health"], summary="Service status")
    async def status(gateway: SubmissionGateway = Depends(get_gateway)) -> dict:
        return {
            "status": "Submit service running",
            "rabbitmq": broker_state(gateway.broker.is_connected),
            "cachedTypes": len(gateway.type_cache),
            "queues": {
                "submit": app_settings.SUBMITTED_QUEUE,
                "typeUpdate": app_settings.TYPE_UPDATE_QUEUE,
            },
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("submit_service.api.main:app", host=settings.API_HOST, port=settings.API_PORT)
