"""
HTTP load generator for a running Computer Catalog service.

Three scenarios run side by side against the public API, each with its own
pool of concurrent workers:
- read: full listing, then the first two keyset pages
- write: create a uniquely named build, then delete it by name
- search: GPU substring and RAM capacity lookups

Each request is timed under an operation name. The summary holds, per
operation, the request count, error rate, p50/p95/max latency and the p95
budget it is held to; `reporter.print_load_results` renders it.

Usage (example from CLI):
    computer-catalog load --url http://localhost:8080 --duration 60 --readers 16
"""

from __future__ import annotations

import asyncio
import itertools
import random
import statistics
import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from computer_catalog.domain.description import (
    ComputerDescription,
    Ram,
    RamModule,
    VideoCard,
    encode_description,
)
from computer_catalog.utils.logging import get_logger

log = get_logger(__name__)

GPU_TERMS = ["RTX", "RX", "GTX", "4070", "3060", "7900"]
RAM_CAPACITIES = [16, 32, 64]

_GPU_MODELS = [
    ("NVIDIA", "GeForce RTX 4070"),
    ("NVIDIA", "GeForce RTX 3060"),
    ("NVIDIA", "GeForce GTX 1660"),
    ("AMD", "Radeon RX 7900 XT"),
]

# Operation -> p95 latency budget in milliseconds
P95_BUDGET_MS: Dict[str, float] = {
    "list": 500.0,
    "paginate": 500.0,
    "search_gpu": 800.0,
    "search_ram": 800.0,
    "create": 1000.0,
    "delete": 1000.0,
}
OPERATIONS = list(P95_BUDGET_MS)


def percentile(values: Sequence[float], pct: int) -> float:
    """
    Interpolated percentile (1..99) of `values`; 0.0 when there are none.
    """
    if not values:
        return 0.0
    if len(values) == 1:
        return float(values[0])
    return statistics.quantiles(values, n=100, method="inclusive")[pct - 1]


@dataclass
class OperationStats:
    """Latency samples and failures for one operation."""

    operation: str
    latencies_ms: List[float] = field(default_factory=list)
    errors: int = 0

    @property
    def requests(self) -> int:
        return len(self.latencies_ms)

    def record(self, elapsed_ms: float, ok: bool) -> None:
        self.latencies_ms.append(elapsed_ms)
        if not ok:
            self.errors += 1

    def summary(self) -> Dict[str, Any]:
        requests = self.requests
        return {
            "operation": self.operation,
            "requests": requests,
            "errors": self.errors,
            "error_rate": round(self.errors / requests, 4) if requests else 0.0,
            "p50_ms": round(percentile(self.latencies_ms, 50), 2),
            "p95_ms": round(percentile(self.latencies_ms, 95), 2),
            "max_ms": round(max(self.latencies_ms, default=0.0), 2),
            "p95_budget_ms": P95_BUDGET_MS.get(self.operation),
        }


def overall_error_rate(results: List[Dict[str, Any]]) -> float:
    """Failed requests over all requests, across every operation."""
    requests = sum(r["requests"] for r in results)
    if not requests:
        return 0.0
    return sum(r["errors"] for r in results) / requests


class LoadTestRunner:
    """
    Drives the read, write and search scenarios through one shared client.

    The client is expected to carry the service base URL; every path here is
    relative to it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        seed: int = 42,
        page_size: int = 50,
        run_id: Optional[str] = None,
    ) -> None:
        self._client = client
        self._rng = random.Random(seed)
        self._page_size = page_size
        self._run_id = run_id or uuid.uuid4().hex[:8]
        self._sequence = itertools.count(1)
        self.stats: Dict[str, OperationStats] = {}

    async def _request(
        self, operation: str, method: str, url: str, expected_status: int, **kwargs: Any
    ) -> Optional[httpx.Response]:
        """Time one request; returns the response only when it has the expected status."""
        start = time.perf_counter()
        response: Optional[httpx.Response] = None
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            log.warning("Request failed", extra={"operation": operation, "error": str(exc)})
        elapsed_ms = (time.perf_counter() - start) * 1000
        ok = response is not None and response.status_code == expected_status
        self.stats.setdefault(operation, OperationStats(operation)).record(elapsed_ms, ok)
        return response if ok else None

    def _payload(self, name: str) -> str:
        vendor, model = self._rng.choice(_GPU_MODELS)
        total_gb = self._rng.choice(RAM_CAPACITIES)
        desc = ComputerDescription(
            name=name,
            price=Decimal(self._rng.randint(250_000, 2_500_000)) / 100,
            video_card=VideoCard(model=model, manufacturer=vendor),
            ram=Ram(
                total_gb=total_gb,
                modules=[RamModule(capacity_gb=total_gb // 2, generation="DDR5")] * 2,
            ),
            notes="load test",
        )
        return encode_description(desc)

    async def read_once(self) -> None:
        await self._request("list", "GET", "/computer", 200)
        page = await self._request(
            "paginate", "GET", "/computer/pagination", 200, params={"limit": self._page_size}
        )
        if page is None:
            return
        rows = page.json()
        if not rows:
            return
        last = rows[-1]
        await self._request(
            "paginate",
            "GET",
            "/computer/pagination",
            200,
            params={"createdAt": last["created_at"], "id": last["id"], "limit": self._page_size},
        )

    async def write_once(self) -> None:
        name = f"load-{self._run_id}-{next(self._sequence)}"
        created = await self._request(
            "create",
            "POST",
            "/computer",
            201,
            content=self._payload(name),
            headers={"content-type": "application/json"},
        )
        if created is not None:
            await self._request("delete", "DELETE", f"/computer/{name}", 204)

    async def search_once(self) -> None:
        term = self._rng.choice(GPU_TERMS)
        await self._request("search_gpu", "GET", f"/computer/search/gpu/{term}", 200)
        capacity = self._rng.choice(RAM_CAPACITIES)
        await self._request("search_ram", "GET", f"/computer/search/ram/{capacity}", 200)

    async def run(
        self,
        duration_seconds: float = 30.0,
        readers: int = 8,
        writers: int = 2,
        searchers: int = 4,
        iterations: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run every scenario concurrently and return the per-operation summary.

        Each worker repeats its scenario until `duration_seconds` elapse, or
        exactly `iterations` times when that is given.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration_seconds

        async def worker(step: Callable[[], Awaitable[None]]) -> None:
            done = 0
            while (done < iterations) if iterations is not None else (loop.time() < deadline):
                await step()
                done += 1
                # Let the other workers in between iterations
                await asyncio.sleep(0)

        workers = (
            [worker(self.read_once) for _ in range(readers)]
            + [worker(self.write_once) for _ in range(writers)]
            + [worker(self.search_once) for _ in range(searchers)]
        )
        log.info(
            "Load test started",
            extra={
                "run_id": self._run_id,
                "readers": readers,
                "writers": writers,
                "searchers": searchers,
            },
        )
        await asyncio.gather(*workers)
        results = self.summary()
        log.info(
            "Load test finished",
            extra={"run_id": self._run_id, "error_rate": round(overall_error_rate(results), 4)},
        )
        return results

    def summary(self) -> List[Dict[str, Any]]:
        return [self.stats[op].summary() for op in OPERATIONS if op in self.stats]


async def run_load_test(
    base_url: str,
    duration_seconds: float = 30.0,
    readers: int = 8,
    writers: int = 2,
    searchers: int = 4,
    page_size: int = 50,
    seed: int = 42,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Dict[str, Any]]:
    """
    Open a client against `base_url` and run the load test through it.
    """
    async with httpx.AsyncClient(
        base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
    ) as client:
        runner = LoadTestRunner(client, seed=seed, page_size=page_size)
        return await runner.run(
            duration_seconds=duration_seconds,
            readers=readers,
            writers=writers,
            searchers=searchers,
        )


__all__ = [
    "GPU_TERMS",
    "LoadTestRunner",
    "OperationStats",
    "P95_BUDGET_MS",
    "RAM_CAPACITIES",
    "overall_error_rate",
    "percentile",
    "run_load_test",
]
