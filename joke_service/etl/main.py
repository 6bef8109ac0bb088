"""
FastAPI application hosting the ETL worker.

The HTTP surface is status only; the work happens in the consumer started by
the reconnect supervisor during the lifespan.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request

from joke_common.messaging import BrokerConnection, ReconnectSupervisor, RetryPolicy
from joke_common.utils.logging_utils import setup_logging
from joke_common.web import broker_state, configure_app, health_status, supervisor_state
from joke_service.config.settings import Settings, settings
from joke_service.core.etl_worker import ETLWorker
from joke_service.storage.factory import create_store

logger = logging.getLogger(__name__)


def build_topology(app_settings: Settings, worker: ETLWorker):
    async def setup(broker: BrokerConnection) -> None:
        await broker.declare_fanout_exchange(app_settings.TYPE_UPDATE_EXCHANGE)
        await broker.declare_queue(app_settings.MODERATED_QUEUE)
        await broker.consume(app_settings.MODERATED_QUEUE, worker.handle_message)
        logger.info(f"ETL publishing type_update events to exchange: {app_settings.TYPE_UPDATE_EXCHANGE}")

    return setup


def get_worker(request: Request) -> ETLWorker:
    worker = getattr(request.app.state, "worker", None)
    if worker is None:
        raise HTTPException(status_code=503, detail="ETL worker is not initialized")
    return worker


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Create and configure the ETL status application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(app_settings.LOGGING_CONFIG_PATH)
        logger.info(f"Starting {app_settings.ETL_APP_NAME} v{app_settings.APP_VERSION} with DB_TYPE={app_settings.DB_TYPE}")

        store = create_store(app_settings)
        try:
            await store.initialize()
        except Exception as e:
            logger.critical(f"Failed to initialize ETL store: {e}", exc_info=True)
            raise

        broker = BrokerConnection(app_settings.RABBITMQ_URL, app_settings.BROKER_PREFETCH_COUNT)
        worker = ETLWorker(store, broker, app_settings.TYPE_UPDATE_EXCHANGE)
        app.state.worker = worker

        supervisor = ReconnectSupervisor(
            broker,
            build_topology(app_settings, worker),
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
        await store.close()

    app = FastAPI(
        title=app_settings.ETL_APP_NAME,
        version=app_settings.APP_VERSION,
        description="Stores moderated jokes and broadcasts joke type updates.",
        debug=app_settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url="/redoc" if app_settings.DEBUG else None,
    )
    configure_app(app, app_settings)

    @app.get("/status", tags=["health"], summary="ETL status")
    async def status(request: Request) -> dict:
        worker = get_worker(request)
        return {
            "status": "ETL service running",
            "dbType": app_settings.DB_TYPE,
            "rabbitmq": broker_state(worker.broker.is_connected),
            "queue": app_settings.MODERATED_QUEUE,
            "exchange": app_settings.TYPE_UPDATE_EXCHANGE,
        }

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(request: Request) -> dict:
        worker = get_worker(request)
        return {
            "status": health_status(request.app),
            "service": app_settings.ETL_APP_NAME,
            "version": app_settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "rabbitmq": broker_state(worker.broker.is_connected),
            "brokerSupervisor": supervisor_state(request.app),
            "database": "connected" if await worker.store.ping() else "disconnected",
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("joke_service.etl.main:app", host=settings.API_HOST, port=settings.ETL_API_PORT)
