import warnings

import pytest
from pydantic import ValidationError

from core.cache import RedisClient
from core.config import Settings


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "cache.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")
    monkeypatch.setenv("REDIS_PASSWORD", "s3cret")
    monkeypatch.setenv("COLLECT_PROCESS_METRICS", "false")
    settings = Settings(_env_file=None)
    assert settings.redis_host == "cache.internal"
    assert settings.redis_port == 6380
    assert settings.redis_password.get_secret_value() == "s3cret"
    assert settings.collect_process_metrics is False
    assert "s3cret" not in repr(settings)


@pytest.mark.parametrize(
    "overrides",
    [
        {"REDIS_PORT": "not-a-port"},
        {"REDIS_PORT": "70000"},
        {"REDIS_HOST": "   "},
        {"REDIS_TIMEOUT_SECONDS": "0"},
    ],
)
def test_malformed_connection_parameters_are_rejected(monkeypatch, overrides):
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_redis_client_uses_configured_timeouts():
    settings = Settings(_env_file=None, redis_host="cache.internal", redis_port=6390, redis_timeout_seconds=1.5)
    client = RedisClient.from_settings(settings)
    kwargs = client.raw.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.internal"
    assert kwargs["port"] == 6390
    assert kwargs["socket_timeout"] == 1.5
    assert kwargs["socket_connect_timeout"] == 1.5


def test_redis_url_takes_precedence():
    settings = Settings(_env_file=None, redis_url="redis://:pw@urlhost:6391/2")
    client = RedisClient.from_settings(settings)
    kwargs = client.raw.connection_pool.connection_kwargs
    assert kwargs["host"] == "urlhost"
    assert kwargs["port"] == 6391
    assert kwargs["db"] == 2


def test_redis_client_builds_without_deprecated_options():
    settings = Settings(_env_file=None)
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        RedisClient.from_settings(settings)
