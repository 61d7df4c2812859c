import asyncio
import time

import pytest

from core.errors import DependencyError
from core.health import DependencyProber, HealthResult, describe_failure
from tests.conftest import FakeRedis


@pytest.mark.asyncio
async def test_healthy_dependency():
    prober = DependencyProber(FakeRedis())
    result = await prober.check_health()
    assert result == HealthResult(status=True, message="Redis connection is healthy")
    assert result.as_dict() == {"status": True, "message": "Redis connection is healthy"}


@pytest.mark.asyncio
async def test_connection_refused():
    prober = DependencyProber(FakeRedis(error=ConnectionRefusedError(111, "Connection refused")))
    result = await prober.check_health()
    assert result == HealthResult(status=False, message="Redis connection failed: connection refused")


@pytest.mark.asyncio
async def test_refusal_found_in_exception_chain():
    class ClientConnectionError(Exception):
        pass

    async def ping():
        try:
            raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 6379)")
        except OSError as exc:
            raise ClientConnectionError("Error 111 connecting to 127.0.0.1:6379.") from exc

    class Client:
        async def ping(self):
            return await ping()

    result = await DependencyProber(Client()).check_health()
    assert result.message == "Redis connection failed: connection refused"


@pytest.mark.asyncio
async def test_slow_dependency_is_bounded_by_timeout():
    client = FakeRedis(delay=5)
    prober = DependencyProber(client, timeout_seconds=0.05)
    start = time.perf_counter()
    result = await prober.check_health()
    assert time.perf_counter() - start < 1
    assert result == HealthResult(status=False, message="Redis connection failed: timeout after 0.05s")


@pytest.mark.asyncio
async def test_unexpected_reply_is_a_failure():
    result = await DependencyProber(FakeRedis(reply=False)).check_health()
    assert result.status is False
    assert result.message == "Redis connection failed: unexpected PING reply"


@pytest.mark.asyncio
async def test_authentication_failure_reason():
    result = await DependencyProber(FakeRedis(error=DependencyError("authentication failed"))).check_health()
    assert result.message == "Redis connection failed: authentication failed"


@pytest.mark.asyncio
async def test_transport_cancellation_is_a_failure():
    result = await DependencyProber(FakeRedis(error=asyncio.CancelledError())).check_health()
    assert result == HealthResult(status=False, message="Redis connection failed: cancelled")


@pytest.mark.asyncio
async def test_repeated_calls_do_not_carry_state():
    client = FakeRedis(error=ConnectionRefusedError(111, "Connection refused"))
    prober = DependencyProber(client)
    assert (await prober.check_health()).status is False
    assert (await prober.check_health()).status is False

    client.error = None
    assert (await prober.check_health()).status is True
    assert (await prober.check_health()).status is True
    assert client.calls == 4


@pytest.mark.asyncio
async def test_observer_receives_results_and_cannot_break_probe():
    seen = []

    def observer(dependency, result, duration):
        seen.append((dependency, result.status, duration))
        raise RuntimeError("observer bug")

    result = await DependencyProber(FakeRedis(), observer=observer).check_health()
    assert result.status is True
    assert seen[0][:2] == ("Redis", True)
    assert seen[0][2] >= 0


def test_timeout_must_be_positive():
    with pytest.raises(ValueError):
        DependencyProber(FakeRedis(), timeout_seconds=0)


def test_describe_failure_falls_back_to_message_or_type():
    assert describe_failure(RuntimeError("protocol error"), 1) == "protocol error"
    assert describe_failure(RuntimeError(), 1) == "RuntimeError"
    assert describe_failure(OSError("Connection refused by peer"), 1) == "connection refused"
