"""Builds the configured Store backend."""

import logging

from joke_service.config.settings import Settings
from joke_service.storage.base_store import JokeStore
from joke_service.storage.document_store import MongoJokeStore
from joke_service.storage.relational_store import SQLAlchemyJokeStore

logger = logging.getLogger(__name__)


def create_store(app_settings: Settings) -> JokeStore:
    """
    Return an uninitialized store for ``app_settings.DB_TYPE``.

    This is the only place the backend is chosen; call sites only see ``JokeStore``.
    """
    if app_settings.DB_TYPE == "mongo":
        logger.info(f"Using document store at {app_settings.MONGO_URI}")
        return MongoJokeStore(app_settings.MONGO_URI, app_settings.MONGO_DATABASE)
    logger.info(f"Using relational store at {app_settings.DB_HOST}:{app_settings.DB_PORT}/{app_settings.DB_NAME}")
    return SQLAlchemyJokeStore(app_settings.DATABASE_URL, echo=app_settings.DB_ECHO)
