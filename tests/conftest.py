from __future__ import annotations

import asyncio
import socket
from typing import Optional

import pytest

from core.config import Settings


class FakeRedis:
    def __init__(self, reply: bool = True, error: Optional[BaseException] = None, delay: float = 0.0) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = 0

    async def ping(self) -> bool:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, redis_host="127.0.0.1", redis_timeout_seconds=0.5, log_level="WARNING")
