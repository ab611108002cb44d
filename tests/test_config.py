import pytest
import structlog
from pydantic import ValidationError as PydanticValidationError

from credo_cache.core import config as config_module
from credo_cache.core.config import Settings, get_cache_config, get_retry_policy
from credo_cache.core import logging as logging_module
from credo_cache.core.logging import LoggerMixin, log_cache_operation, setup_logging
from credo_cache.domain.models.cache_config import CacheConfig
from credo_cache.domain.models.retry_policy import RetryPolicy
from credo_cache.infrastructure.cache.error_channel import ErrorChannel


def test_settings_defaults(monkeypatch):
    for name in ("ENVIRONMENT", "REDIS_HOST", "REDIS_PORT", "REDIS_PREFIX", "CACHE_NAME"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.ENVIRONMENT == "development"
    assert settings.REDIS_HOST == "localhost"
    assert settings.REDIS_PORT == 6379
    assert settings.REDIS_PREFIX is None
    assert settings.RETRY_MAX_TIME_MS == 60000


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")
    monkeypatch.setenv("REDIS_PREFIX", "  ")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.REDIS_HOST == "redis.internal"
    assert settings.REDIS_PORT == 6380
    assert settings.REDIS_PREFIX is None
    assert settings.LOG_LEVEL == "DEBUG"


def test_settings_reject_unknown_environment(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "qa")

    with pytest.raises(PydanticValidationError):
        Settings(_env_file=None)


def test_cache_config_from_settings(monkeypatch):
    settings = Settings(
        _env_file=None,
        CACHE_NAME="sessions",
        REDIS_HOST="redis.internal",
        REDIS_PREFIX="sessions:",
        RETRY_INTERVAL_STEP_MS=100,
    )
    monkeypatch.setattr(config_module, "settings", settings)

    cache_config = get_cache_config()

    assert cache_config.name == "sessions"
    assert cache_config.redis.host == "redis.internal"
    assert cache_config.redis.prefix == "sessions:"
    assert get_retry_policy() == RetryPolicy(retry_interval_step=100)


def test_cache_config_accepts_connection_alias():
    cache_config = CacheConfig.model_validate(
        {"name": "", "connection": {"host": "localhost", "port": 6379}}
    )

    assert cache_config.name == "cache"
    assert cache_config.redis.password == ""
    assert cache_config.redis.retry_strategy is None


def test_log_cache_operation_writes_a_trace_event(recording_logger):
    log_cache_operation("testcache", "set", 1.23456, False, logger=recording_logger, keys=1)

    level, event, fields = recording_logger.records[0]
    assert (level, event) == ("debug", "Cache operation")
    assert fields == {
        "source": "testcache",
        "operation": "set",
        "duration_ms": 1.235,
        "success": False,
        "keys": 1,
    }


def test_setup_logging_uses_json_renderer_in_production(monkeypatch):
    monkeypatch.setattr(config_module, "settings", Settings(_env_file=None, ENVIRONMENT="production"))

    try:
        setup_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
    finally:
        structlog.reset_defaults()


def test_console_renderer_outside_production(monkeypatch):
    monkeypatch.setattr(config_module, "settings", Settings(_env_file=None, ENVIRONMENT="staging"))

    assert isinstance(logging_module._get_processor(), structlog.dev.ConsoleRenderer)


@pytest.mark.parametrize(
    "environment, production, development",
    [("production", True, False), ("development", False, True), ("staging", False, False)],
)
def test_environment_helpers(monkeypatch, environment, production, development):
    monkeypatch.setattr(config_module, "settings", Settings(_env_file=None, ENVIRONMENT=environment))

    assert config_module.is_production() is production
    assert config_module.is_development() is development


def test_logger_mixin_names_logger_after_the_class(monkeypatch):
    names = []
    monkeypatch.setattr(logging_module, "get_logger", lambda name: names.append(name) or name)

    channel = ErrorChannel("testcache")

    assert isinstance(channel, LoggerMixin)
    assert channel.logger == "credo_cache.infrastructure.cache.error_channel.ErrorChannel"
    assert names == ["credo_cache.infrastructure.cache.error_channel.ErrorChannel"]
