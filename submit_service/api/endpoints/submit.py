"""
Submission endpoints.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from joke_common.errors import BrokerUnavailable, ValidationError
from joke_common.models.dtos import JokeSubmission
from submit_service.api.dependencies import get_gateway
from submit_service.core.gateway import SubmissionGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/submit", summary="Submit a new joke")
async def submit_joke(
    submission: JokeSubmission,
    gateway: SubmissionGateway = Depends(get_gateway),
) -> dict:
    """
    Queue a joke (setup, punchline, type) for moderation. All fields are required.

    Raises:
        HTTPException: 400 on missing fields, 503 when the broker is unavailable.
    """
    try:
        await gateway.submit(submission.setup, submission.punchline, submission.type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BrokerUnavailable as e:
        logger.error(f"Failed to publish submission: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"status": "Joke submitted successfully"}


@router.get("/types", response_model=List[str], summary="Get cached joke types")
async def list_types(gateway: SubmissionGateway = Depends(get_gateway)) -> List[str]:
    """Types from the local cache, kept in sync by type_update events."""
    return gateway.list_cached_types()
