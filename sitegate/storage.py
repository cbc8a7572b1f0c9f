"""Redis bootstrap shared by the client site and the controller."""

import logging

import redis

from .config import RedisSettings

logger = logging.getLogger(__name__)


def connect_redis(settings: RedisSettings) -> "redis.Redis[str] | None":
    """Return a live Redis client, or ``None`` so the caller falls back to memory."""
    if not settings.enabled:
        logger.info("[REDIS] Disabled, using in-memory storage")
        return None
    try:
        client = redis.Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            decode_responses=True,
            socket_connect_timeout=settings.connect_timeout,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning(
            "[REDIS] Unavailable at %s:%s, falling back to in-memory storage: %s",
            settings.host,
            settings.port,
            e,
        )
        return None
    logger.info("[REDIS] Connected at %s:%s", settings.host, settings.port)
    return client
