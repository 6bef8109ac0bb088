"""
Moderation endpoints. All routes here require an authenticated moderator.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from joke_common.errors import BrokerUnavailable, ProcessingError, ValidationError
from joke_common.models.dtos import ModeratedDecision
from moderate_service.api.dependencies import get_moderator, require_moderator
from moderate_service.core.moderator import DecisionStatus, ModerationWorker

router = APIRouter(dependencies=[Depends(require_moderator)])
logger = logging.getLogger(__name__)


@router.get("/moderate", summary="Fetch next submitted joke for moderation")
async def fetch_next(moderator: ModerationWorker = Depends(get_moderator)) -> dict:
    """
    Get one joke from the SUBMITTED queue, or a message when none is pending.

    The joke is removed from the queue as soon as it is returned.
    """
    try:
        joke = await moderator.fetch_next()
    except BrokerUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ProcessingError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if joke is None:
        return {"message": "No jokes available for moderation"}
    return joke.model_dump()


@router.post("/moderated", summary="Submit a moderation decision")
async def submit_decision(
    decision: ModeratedDecision,
    moderator: ModerationWorker = Depends(get_moderator),
) -> dict:
    """
    Forward an approved joke to the ETL queue, or discard a rejected one.

    Raises:
        HTTPException: 400 if approved with missing fields, 503 when the broker is unavailable.
    """
    try:
        status = await moderator.decide(decision.approved, decision.setup, decision.punchline, decision.type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BrokerUnavailable as e:
        logger.error(f"Failed to publish moderated message: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    if status is DecisionStatus.REJECTED:
        return {"status": status.value, "message": "Joke rejected by moderator"}
    return {"status": status.value, "message": "Moderated joke forwarded to ETL"}


@router.get("/types", response_model=List[str], summary="Get cached joke types")
async def list_types(moderator: ModerationWorker = Depends(get_moderator)) -> List[str]:
    return moderator.list_cached_types()
