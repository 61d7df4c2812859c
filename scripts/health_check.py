from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

import httpx
from prometheus_client.parser import text_string_to_metric_families

REQUIRED_METRICS = ("process_cpu_seconds_total", "process_resident_memory_bytes", "process_start_time_seconds")


async def check_redis(client: httpx.AsyncClient) -> dict[str, Any]:
    response = await client.get("/redis")
    response.raise_for_status()
    return response.json()


async def check_metrics(client: httpx.AsyncClient) -> dict[str, Any]:
    response = await client.get("/metrics")
    response.raise_for_status()
    samples = {sample.name for family in text_string_to_metric_families(response.text) for sample in family.samples}
    missing = [name for name in REQUIRED_METRICS if name not in samples]
    return {"samples": len(samples), "missing": missing}


async def main(base_url: str) -> int:
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        redis_status, metrics_status = await asyncio.gather(check_redis(client), check_metrics(client))

    result = {"redis": redis_status, "metrics": metrics_status}
    print(json.dumps(result, indent=2))
    return 0 if redis_status.get("status") and not metrics_status["missing"] else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Probe a running instance's /redis and /metrics endpoints")
    parser.add_argument("--base-url", default="http://localhost:3000")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.base_url)))
