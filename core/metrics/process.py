from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

import psutil
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from core.errors import StartupError

logger = logging.getLogger(__name__)

_DESCRIPTIONS = (
    ("process_cpu_user_seconds", "Total user CPU time spent in seconds.", CounterMetricFamily),
    ("process_cpu_system_seconds", "Total system CPU time spent in seconds.", CounterMetricFamily),
    ("process_cpu_seconds", "Total user and system CPU time spent in seconds.", CounterMetricFamily),
    ("process_resident_memory_bytes", "Resident memory size in bytes.", GaugeMetricFamily),
    ("process_virtual_memory_bytes", "Virtual memory size in bytes.", GaugeMetricFamily),
    ("process_start_time_seconds", "Start time of the process since unix epoch in seconds.", GaugeMetricFamily),
    ("process_uptime_seconds", "Number of seconds since the process started.", GaugeMetricFamily),
    ("process_open_fds", "Number of open file descriptors.", GaugeMetricFamily),
    ("process_max_fds", "Maximum number of open file descriptors.", GaugeMetricFamily),
    ("process_threads", "Number of OS threads in the process.", GaugeMetricFamily),
)

_FAMILIES = {name: (documentation, family) for name, documentation, family in _DESCRIPTIONS}


def _family(name: str, value: float) -> Metric:
    documentation, family = _FAMILIES[name]
    return family(name, documentation, value=value)


class ProcessMetricsCollector(Collector):
    """Built-in process statistics read from the operating system on every scrape.

    Each statistic is queried independently; a statistic whose query fails is
    left out of that scrape so the rest of the snapshot is still served.
    """

    def __init__(self, pid: Optional[int] = None) -> None:
        try:
            self._process = psutil.Process(pid)
            self._start_time = self._process.create_time()
        except (psutil.Error, OSError) as exc:
            raise StartupError(f"Process introspection is unavailable: {exc}") from exc

    def describe(self) -> Iterable[Metric]:
        return [family(name, documentation) for name, documentation, family in _DESCRIPTIONS]

    def collect(self) -> Iterable[Metric]:
        readers: List[Callable[[], List[Metric]]] = [
            self._cpu,
            self._memory,
            self._start,
            self._open_fds,
            self._max_fds,
            self._threads,
        ]
        metrics: List[Metric] = []
        for reader in readers:
            try:
                metrics.extend(reader())
            except Exception as exc:
                logger.debug("Process metric omitted", extra={"reader": reader.__name__, "reason": str(exc)})
        return metrics

    def _cpu(self) -> List[Metric]:
        times = self._process.cpu_times()
        return [
            _family("process_cpu_user_seconds", times.user),
            _family("process_cpu_system_seconds", times.system),
            _family("process_cpu_seconds", times.user + times.system),
        ]

    def _memory(self) -> List[Metric]:
        info = self._process.memory_info()
        return [
            _family("process_resident_memory_bytes", info.rss),
            _family("process_virtual_memory_bytes", info.vms),
        ]

    def _start(self) -> List[Metric]:
        uptime = max(0.0, time.time() - self._start_time)
        return [
            _family("process_start_time_seconds", self._start_time),
            _family("process_uptime_seconds", uptime),
        ]

    def _open_fds(self) -> List[Metric]:
        # num_fds is POSIX only
        return [_family("process_open_fds", self._process.num_fds())]

    def _max_fds(self) -> List[Metric]:
        soft, _ = self._process.rlimit(psutil.RLIMIT_NOFILE)
        return [_family("process_max_fds", soft)]

    def _threads(self) -> List[Metric]:
        return [_family("process_threads", self._process.num_threads())]
