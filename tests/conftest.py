"""
Shared fixtures for WordGuard Gateway tests.
"""

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from wordguard_gateway.auth import AuthManager
from wordguard_gateway.cache import WordCache
from wordguard_gateway.config import Settings
from wordguard_gateway.content_filter import ContentFilter
from wordguard_gateway.main import create_app
from wordguard_gateway.violation_store import ViolationStore
from wordguard_gateway.word_store import WordStore


class FakeClock:
    """Settable clock for timestamped records."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def redis_client():
    """Isolated in-process Redis."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def word_store(redis_client):
    return WordStore(redis_client, cache=WordCache(ttl_seconds=300))


@pytest.fixture
def content_filter(word_store):
    return ContentFilter(word_store)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def violation_store(redis_client, clock):
    return ViolationStore(redis_client, retention_days=90, clock=clock)


@pytest.fixture
def settings():
    return Settings(cleanup_interval_hours=0)


@pytest.fixture
def app(settings, redis_client):
    return create_app(settings=settings, redis_client=redis_client)


@pytest.fixture
def admin_headers():
    token = AuthManager.create_access_token({"sub": "alice", "is_admin": True})
    return {"Authorization": f"Bearer {token}"}
