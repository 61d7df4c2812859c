from __future__ import annotations

import logging
from typing import Any, Dict

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import AuthenticationError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.config import Settings
from core.errors import DependencyError, StartupError

logger = logging.getLogger(__name__)


class RedisClient:
    """Thin adapter over ``redis.asyncio.Redis`` exposing the ``ping`` capability used by health probes.

    The underlying connection pool is shared by concurrent coroutines. Socket
    timeouts bound every round-trip and no client-side retries are attempted.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisClient":
        options: Dict[str, Any] = {
            "socket_connect_timeout": settings.redis_timeout_seconds,
            "socket_timeout": settings.redis_timeout_seconds,
            "retry": Retry(NoBackoff(), 0),
            "decode_responses": True,
        }
        if settings.redis_url:
            try:
                client = Redis.from_url(settings.redis_url, **options)
            except ValueError as exc:
                raise StartupError(f"Invalid REDIS_URL: {exc}") from exc
        else:
            password = settings.redis_password.get_secret_value() if settings.redis_password else None
            client = Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                username=settings.redis_username,
                password=password,
                ssl=settings.redis_ssl,
                **options,
            )
        return cls(client)

    async def ping(self) -> bool:
        try:
            response = await self._client.ping()
        except AuthenticationError as exc:
            raise DependencyError("authentication failed") from exc
        except RedisTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc
        return bool(response)

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def raw(self) -> Redis:
        return self._client
