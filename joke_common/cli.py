"""Command-line interface for running and inspecting the joke pipeline."""

import asyncio
import logging
import sys
from enum import Enum
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from joke_common.utils.logging_utils import setup_logging

app = typer.Typer(help="Joke pipeline commands")
logger = logging.getLogger(__name__)


class Service(str, Enum):
    submit = "submit"
    moderate = "moderate"
    joke = "joke"
    etl = "etl"


# (import string, settings module) per service
SERVICE_APPS = {
    Service.submit: ("submit_service.api.main:app", "submit_service.config.settings"),
    Service.moderate: ("moderate_service.api.main:app", "moderate_service.config.settings"),
    Service.joke: ("joke_service.api.main:app", "joke_service.config.settings"),
    Service.etl: ("joke_service.etl.main:app", "joke_service.config.settings"),
}


@app.callback()
def main(
    env_file: Annotated[Optional[str], typer.Option("--env-file", help="Extra .env file loaded before settings")] = None,
) -> None:
    """Load environment overrides before any settings module is imported."""
    if env_file:
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()


@app.command("serve")
def serve(
    service: Annotated[Service, typer.Argument(help="Service to run")],
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address (defaults to API_HOST)")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port (defaults to the service's configured port)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Enable auto-reload")] = False,
) -> None:
    """Run one of the pipeline services with uvicorn."""
    import importlib

    import uvicorn

    app_path, settings_module = SERVICE_APPS[service]
    service_settings = importlib.import_module(settings_module).settings
    default_port = service_settings.ETL_API_PORT if service is Service.etl else service_settings.API_PORT

    uvicorn.run(
        app_path,
        host=host or service_settings.API_HOST,
        port=port or default_port,
        reload=reload,
        log_config=None,
    )


@app.command("seed")
def seed() -> None:
    """Insert the default types and sample jokes if the configured store is empty."""
    from joke_service.config.settings import settings
    from joke_service.storage import create_store, seed_if_empty

    setup_logging(settings.LOGGING_CONFIG_PATH)

    async def _run() -> int:
        store = create_store(settings)
        await store.initialize()
        try:
            return await seed_if_empty(store)
        finally:
            await store.close()

    inserted = asyncio.run(_run())
    if inserted:
        typer.echo(f"Inserted {inserted} sample jokes into the {settings.DB_TYPE} store")
    else:
        typer.echo("Store already contains jokes; nothing inserted")


@app.command("types")
def types() -> None:
    """Print the joke types currently held by the configured store."""
    from joke_common.errors import StoreError
    from joke_service.config.settings import settings
    from joke_service.storage import create_store

    setup_logging(settings.LOGGING_CONFIG_PATH)

    async def _run():
        store = create_store(settings)
        await store.initialize()
        try:
            return await store.list_distinct_types()
        finally:
            await store.close()

    try:
        names = asyncio.run(_run())
    except StoreError as e:
        logger.error(f"Could not read joke types: {e}")
        sys.exit(1)
    for name in names:
        typer.echo(name)


if __name__ == "__main__":
    app()
