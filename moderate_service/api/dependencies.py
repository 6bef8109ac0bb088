import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from moderate_service.core.moderator import ModerationWorker

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_moderator(request: Request) -> ModerationWorker:
    """Worker instance created by the application lifespan."""
    moderator = getattr(request.app.state, "moderator", None)
    if moderator is None:
        raise HTTPException(status_code=503, detail="Moderation worker is not initialized")
    return moderator


def is_authenticated(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> bool:
    """True when no token is configured or the caller presented the configured one."""
    expected = request.app.state.settings.MODERATOR_API_TOKEN
    if not expected:
        return True
    if credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials, expected)


def require_moderator(authenticated: bool = Depends(is_authenticated)) -> None:
    if not authenticated:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
