from __future__ import annotations

import asyncio
import errno
import logging
import time
from dataclasses import asdict, dataclass
from typing import Callable, Iterator, Optional, Protocol

from core.errors import DependencyError
from core.logging import log_event

logger = logging.getLogger(__name__)


class PingClient(Protocol):
    async def ping(self) -> bool:
        ...


@dataclass(frozen=True)
class HealthResult:
    status: bool
    message: str

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


ProbeObserver = Callable[[str, HealthResult, float], None]


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def describe_failure(exc: BaseException, timeout_seconds: float) -> str:
    """Reduce a probe failure to a short, stable reason string."""
    if isinstance(exc, DependencyError):
        return exc.reason
    if isinstance(exc, TimeoutError):
        return f"timeout after {timeout_seconds:g}s"
    for link in _exception_chain(exc):
        if isinstance(link, ConnectionRefusedError) or getattr(link, "errno", None) == errno.ECONNREFUSED:
            return "connection refused"
        if isinstance(link, TimeoutError):
            return f"timeout after {timeout_seconds:g}s"
    message = str(exc).strip()
    if "connection refused" in message.lower():
        return "connection refused"
    return message or type(exc).__name__


class DependencyProber:
    """Answers whether a dependency is reachable by issuing one bounded PING per call.

    Nothing is cached between calls: every ``check_health`` verifies the shared
    client handle again, and every failure mode becomes a ``status=False`` result.
    """

    def __init__(
        self,
        client: PingClient,
        dependency: str = "Redis",
        timeout_seconds: float = 2.0,
        observer: Optional[ProbeObserver] = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._client = client
        self._dependency = dependency
        self._timeout = timeout_seconds
        self._observer = observer

    @property
    def dependency(self) -> str:
        return self._dependency

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def check_health(self) -> HealthResult:
        start = time.perf_counter()
        try:
            alive = await asyncio.wait_for(self._client.ping(), timeout=self._timeout)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            result = self._failed("cancelled")
        except Exception as exc:
            result = self._failed(describe_failure(exc, self._timeout))
        else:
            result = self._healthy() if alive else self._failed("unexpected PING reply")
        duration = time.perf_counter() - start

        if result.status:
            log_event(logger, "dependency.probe.ok", level=logging.DEBUG, dependency=self._dependency, duration_ms=int(duration * 1000))
        else:
            log_event(
                logger,
                "dependency.probe.failed",
                level=logging.WARNING,
                dependency=self._dependency,
                reason=result.message,
                duration_ms=int(duration * 1000),
            )
        self._notify(result, duration)
        return result

    def _healthy(self) -> HealthResult:
        return HealthResult(status=True, message=f"{self._dependency} connection is healthy")

    def _failed(self, reason: str) -> HealthResult:
        return HealthResult(status=False, message=f"{self._dependency} connection failed: {reason}")

    def _notify(self, result: HealthResult, duration: float) -> None:
        if self._observer is None:
            return
        try:
            self._observer(self._dependency, result, duration)
        except Exception:
            logger.exception("Probe observer failed", extra={"dependency": self._dependency})
