import logging
import os
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from shortener.exceptions import (
    DuplicateMapping,
    EntropyFailure,
    InvalidURL,
    RecordNotFound,
    StorageFailed,
)
from shortener.helpers import generate_short_code, validate_url
from shortener.models import URLMapping
from shortener.repository import URLRegistry

logger = logging.getLogger(__name__)

CACHE_EXPIRY_SECONDS = int(os.getenv("CACHE_EXPIRY_SECONDS", 3600))

__all__ = [
    "CACHE_EXPIRY_SECONDS",
    "DuplicateMapping",
    "EntropyFailure",
    "InvalidURL",
    "RecordNotFound",
    "StorageFailed",
    "resolveURL",
    "shortenURL",
]


def cacheKey(short_code: str) -> str:
    return f"url:{short_code}"


async def cacheGet(redis: Optional[Redis], short_code: str) -> Optional[str]:
    """Read a cached long URL. The cache is optional, so failures count as a miss."""

    if redis is None:
        return None
    try:
        return await redis.get(cacheKey(short_code))
    except (RedisError, OSError) as exc:
        logger.warning(f"Cache read failed for short code {short_code}: {str(exc)}")
        return None


async def cachePut(redis: Optional[Redis], short_code: str, long_url: str) -> None:
    if redis is None:
        return
    try:
        await redis.setex(cacheKey(short_code), CACHE_EXPIRY_SECONDS, long_url)
    except (RedisError, OSError) as exc:
        logger.warning(f"Cache write failed for short code {short_code}: {str(exc)}")


async def shortenURL(
    registry: URLRegistry, redis: Optional[Redis], long_url: str
) -> URLMapping:
    """Validate, generate a code, and persist the mapping.

    A DuplicateMapping is raised as is; whether to retry with a fresh code is
    left to the caller.
    """

    try:
        validate_url(long_url)
    except InvalidURL as exc:
        logger.warning(f"Rejected URL before shortening: {exc.message}")
        raise

    short_code = generate_short_code()
    mapping = await registry.persist(long_url, short_code)

    await cachePut(redis, mapping.short_code, mapping.long_url)
    logger.info(f"URL shortened: {mapping.long_url} -> {mapping.short_code}")

    return mapping


async def resolveURL(registry: URLRegistry, redis: Optional[Redis], short_code: str) -> str:
    cached_url = await cacheGet(redis, short_code)
    if cached_url:
        logger.info(f"Cache hit - Redirecting: {short_code} -> {cached_url}")
        return cached_url

    long_url = await registry.resolve(short_code)
    if long_url is None:
        logger.warning(f"Cannot find matching URL for short code: {short_code}")
        raise RecordNotFound("Long URL", short_code)

    await cachePut(redis, short_code, long_url)
    logger.info(f"URL found - Redirecting: {short_code} -> {long_url}")

    return long_url
