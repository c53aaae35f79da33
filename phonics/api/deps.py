from __future__ import annotations

import logging
from collections.abc import Generator

import redis

from phonics.session_registry import SessionRegistry, registry


logger = logging.getLogger(__name__)


def create_redis(url: str | None = None) -> redis.Redis:
    """Client for content and progress storage (strings in/out)."""

    return redis.Redis.from_url(url or registry.settings.redis_url, decode_responses=True)


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except redis.RedisError:
            logger.debug("Ignoring error while closing redis client", exc_info=True)


def get_sessions() -> SessionRegistry:
    return registry
