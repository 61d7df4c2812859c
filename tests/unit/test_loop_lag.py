import asyncio

import pytest
from prometheus_client import CollectorRegistry, Gauge

from core.metrics import EventLoopLagMonitor


@pytest.mark.asyncio
async def test_monitor_records_lag_and_stops():
    registry = CollectorRegistry()
    gauge = Gauge("lag_seconds", "Lag", registry=registry)
    gauge.set(-1)
    monitor = EventLoopLagMonitor(gauge, interval_seconds=0.01)

    monitor.start()
    assert monitor.running
    await asyncio.sleep(0.1)
    await monitor.stop()

    assert not monitor.running
    assert registry.get_sample_value("lag_seconds") >= 0
