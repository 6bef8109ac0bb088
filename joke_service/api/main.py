"""
FastAPI application for the joke query API.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Depends, FastAPI

from joke_common.rate_limit import close_rate_limiter, init_rate_limiter, rate_limit_dependencies
from joke_common.utils.logging_utils import setup_logging
from joke_common.web import configure_app
from joke_service.api.dependencies import get_store
from joke_service.api.endpoints import jokes
from joke_service.config.settings import Settings, settings
from joke_service.storage.base_store import JokeStore
from joke_service.storage.factory import create_store
from joke_service.storage.seed import seed_if_empty

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(app_settings.LOGGING_CONFIG_PATH)
        logger.info(f"Starting {app_settings.APP_NAME} v{app_settings.APP_VERSION} with DB_TYPE={app_settings.DB_TYPE}")

        store = create_store(app_settings)
        try:
            await store.initialize()
            if app_settings.SEED_DEFAULT_JOKES:
                inserted = await seed_if_empty(store)
                if inserted:
                    logger.info(f"Seeded {inserted} default jokes")
        except Exception as e:
            logger.critical(f"Failed to initialize database: {e}", exc_info=True)
            raise
        app.state.store = store
        limiter_redis = await init_rate_limiter(app_settings)

        yield

        logger.info("Shutting down application")
        await close_rate_limiter(limiter_redis)
        await store.close()

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Retrieve random jokes. Backed by MongoDB or PostgreSQL, selected by DB_TYPE.",
        debug=app_settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url="/redoc" if app_settings.DEBUG else None,
        openapi_tags=[
            {"name": "jokes", "description": "Joke retrieval"},
            {"name": "health", "description": "Health check and monitoring"},
        ],
    )
    app.state.settings = app_settings
    configure_app(app, app_settings)
    app.include_router(jokes.router, tags=["jokes"], dependencies=rate_limit_dependencies(app_settings))

    @app.get("/status", tags=["health"], summary="Service status")
    async def status() -> dict:
        return {"status": "Joke service running", "dbType": app_settings.DB_TYPE}

    @app.get("/health", tags=["health"], summary="Health Check")
    async def health_check(store: JokeStore = Depends(get_store)) -> dict:
        return {
            "status": "healthy",
            "service": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "dbType": app_settings.DB_TYPE,
            "database": "connected" if await store.ping() else "disconnected",
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("joke_service.api.main:app", host=settings.API_HOST, port=settings.API_PORT)
