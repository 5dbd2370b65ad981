"""
Redis client for WordGuard Gateway

Sensitive words and violation logs live in Redis hashes, with a set index
for words and sorted-set (timestamp-scored) indices for violation logs.
"""

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

import redis

from .config import get_settings
from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# Key layout
WORD_KEY_PREFIX = "sensitive_word:"
WORD_INDEX_KEY = "sensitive_words_index"
VIOLATION_KEY_PREFIX = "violation_log:"
VIOLATION_GLOBAL_INDEX_KEY = "violation_logs_global"
VIOLATION_KEY_INDEX_PREFIX = "violation_logs_by_key:"


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """
    Get singleton Redis client.

    Returns:
        redis.Redis: Connected Redis client.

    Raises:
        redis.ConnectionError: If Redis is unreachable.
    """
    settings = get_settings()
    client = redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    client.ping()
    logger.info("Redis client connected to %s", settings.redis_url)
    return client


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate Redis connectivity failures into StoreUnavailableError."""
    try:
        yield
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise StoreUnavailableError(f"Redis is unavailable: {e}") from e


def word_key(word_id: str) -> str:
    return f"{WORD_KEY_PREFIX}{word_id}"


def violation_key(violation_id: str) -> str:
    return f"{VIOLATION_KEY_PREFIX}{violation_id}"


def violation_key_index(api_key_id: str) -> str:
    return f"{VIOLATION_KEY_INDEX_PREFIX}{api_key_id}"
