import os
import sys
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
os.environ.setdefault("ANYIO_BACKEND", "asyncio")

from credo_cache.infrastructure.cache import cache_service  # noqa: E402
from credo_cache.infrastructure.cache.cache_service import Cache  # noqa: E402


class RecordingLogger:
    """Logger double that keeps every event for assertions."""

    def __init__(self):
        self.records = []

    def _record(self, level, event, **kwargs):
        self.records.append((level, event, kwargs))

    def debug(self, event, **kwargs):
        self._record("debug", event, **kwargs)

    def info(self, event, **kwargs):
        self._record("info", event, **kwargs)

    def warning(self, event, **kwargs):
        self._record("warning", event, **kwargs)

    def error(self, event, **kwargs):
        self._record("error", event, **kwargs)

    def events(self, level):
        return [event for record_level, event, _ in self.records if record_level == level]


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def fake_redis():
    """Redis client double; every command is an AsyncMock."""
    mock = AsyncMock(spec=redis.Redis)
    mock.get = AsyncMock(return_value=None)
    mock.mget = AsyncMock(return_value=[])
    mock.set = AsyncMock(return_value=True)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.eval = AsyncMock(return_value=None)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def cache_config() -> dict:
    return {
        "name": "testcache",
        "connection": {"host": "localhost", "port": 6379, "password": ""},
    }


@pytest.fixture
def created_clients(monkeypatch, fake_redis):
    """Route client creation to the fake and remember what it was created with."""
    created = []

    def fake_create_redis_client(connection, retry):
        created.append((connection, retry))
        return fake_redis

    monkeypatch.setattr(cache_service, "create_redis_client", fake_create_redis_client)
    return created


@pytest.fixture
def make_cache(created_clients, cache_config, recording_logger):
    def _make(config=None, **kwargs):
        kwargs.setdefault("logger", recording_logger)
        return Cache(cache_config if config is None else config, **kwargs)

    return _make


@pytest.fixture
def cache(make_cache) -> Cache:
    return make_cache()
