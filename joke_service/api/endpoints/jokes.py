"""
Read-only joke endpoints backed directly by the Store.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from joke_common.errors import StoreError
from joke_common.models.dtos import JokeDTO
from joke_service.api.dependencies import get_settings, get_store
from joke_service.config.settings import Settings
from joke_service.storage.base_store import JokeStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/joke/{joke_type}", response_model=List[JokeDTO], summary="Get random joke(s) by type")
async def get_jokes(
    joke_type: str,
    count: int = Query(1, ge=1, description="Number of jokes to return"),
    store: JokeStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
) -> List[JokeDTO]:
    """
    Random jokes of the given type; use "any" for all types.

    Returns what is available when fewer jokes exist than requested.
    """
    try:
        return await store.sample(joke_type, min(count, app_settings.MAX_SAMPLE_COUNT))
    except StoreError as e:
        logger.error(f"Error sampling jokes of type {joke_type}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/types", response_model=List[str], summary="Get all joke types")
async def list_types(store: JokeStore = Depends(get_store)) -> List[str]:
    """Distinct joke types from the Store."""
    try:
        return await store.list_distinct_types()
    except StoreError as e:
        logger.error(f"Error listing joke types: {e}")
        raise HTTPException(status_code=500, detail=str(e))
