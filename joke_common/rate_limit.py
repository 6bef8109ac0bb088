"""
Per-client request rate limiting for the public HTTP routes.

Counters live in Redis through fastapi-limiter so every replica of a service
shares one budget per client address.
"""
import logging
from typing import List, Optional

from fastapi import Depends, Request
from fastapi.params import Depends as DependsParam
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import Redis, from_url

from joke_common.config.settings import BrokerSettings

logger = logging.getLogger(__name__)


def _client_identifier_for(settings: BrokerSettings):
    async def identifier(request: Request) -> str:
        if settings.RATE_LIMIT_TRUST_PROXY:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip() + ":" + request.scope["path"]
        host = request.client.host if request.client else "unknown"
        return host + ":" + request.scope["path"]

    return identifier


async def init_rate_limiter(settings: BrokerSettings, redis: Optional[Redis] = None) -> Optional[Redis]:
    """
    Connect the limiter to Redis. Called from the lifespan.

    Returns:
        The Redis client to close at shutdown, or None when rate limiting is disabled.
    """
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting disabled")
        return None
    if redis is None:
        redis = from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=False)
    await FastAPILimiter.init(redis, identifier=_client_identifier_for(settings))
    logger.info(
        f"Rate limiting {settings.RATE_LIMIT_TIMES} requests per {settings.RATE_LIMIT_SECONDS}s per client"
    )
    return redis


async def close_rate_limiter(redis: Optional[Redis]) -> None:
    if redis is None:
        return
    await FastAPILimiter.close()


def rate_limit_dependencies(settings: BrokerSettings) -> List[DependsParam]:
    """Router dependencies enforcing the configured budget. Empty when disabled."""
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [Depends(RateLimiter(times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS))]
