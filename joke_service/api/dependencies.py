from fastapi import HTTPException, Request

from joke_service.config.settings import Settings
from joke_service.storage.base_store import JokeStore


def get_store(request: Request) -> JokeStore:
    """Store instance created by the application lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Joke store is not initialized")
    return store


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings
