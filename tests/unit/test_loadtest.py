from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from computer_catalog import main as cli
from computer_catalog.domain.description import decode_description
from computer_catalog.loadtest import (
    GPU_TERMS,
    RAM_CAPACITIES,
    LoadTestRunner,
    OperationStats,
    overall_error_rate,
    percentile,
    run_load_test,
)

BASE_URL = "http://catalog.test"


class _FakeCatalog:
    """Just enough of the HTTP API to answer every scenario."""

    def __init__(self, delete_status: int = 204) -> None:
        self.rows: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.delete_status = delete_status

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/computer":
            desc = decode_description(request.content)
            row = {"id": len(self.rows) + 1, "name": desc.name, "created_at": "2024-01-01T00:00:00"}
            self.rows.append(row)
            return httpx.Response(201, json=row)
        if request.method == "DELETE":
            name = path.rsplit("/", 1)[-1]
            if self.delete_status == 204:
                self.rows = [r for r in self.rows if r["name"] != name]
            return httpx.Response(self.delete_status)
        if path == "/computer":
            return httpx.Response(200, json=self.rows)
        if path == "/computer/pagination":
            if "id" in request.url.params:
                return httpx.Response(200, json=[])
            return httpx.Response(200, json=[{"id": 7, "created_at": "2024-01-01T00:00:00"}])
        if path.startswith("/computer/search/"):
            return httpx.Response(200, json=[])
        return httpx.Response(404)


def _client(catalog: _FakeCatalog) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(catalog.handle))


def test_percentile_interpolates() -> None:
    values = [float(v) for v in range(1, 101)]

    assert percentile(values, 50) == pytest.approx(50.5)
    assert percentile(values, 95) == pytest.approx(95.05)


def test_percentile_of_small_samples() -> None:
    assert percentile([], 95) == 0.0
    assert percentile([12.5], 95) == 12.5


def test_operation_stats_summary() -> None:
    stats = OperationStats("create")
    stats.record(10.0, ok=True)
    stats.record(30.0, ok=False)

    summary = stats.summary()

    assert summary["requests"] == 2
    assert summary["errors"] == 1
    assert summary["error_rate"] == 0.5
    assert summary["max_ms"] == 30.0
    assert summary["p95_budget_ms"] == 1000.0


def test_overall_error_rate_spans_operations() -> None:
    results = [
        {"operation": "list", "requests": 8, "errors": 0},
        {"operation": "delete", "requests": 2, "errors": 1},
    ]
    assert overall_error_rate(results) == pytest.approx(0.1)
    assert overall_error_rate([]) == 0.0


@pytest.mark.asyncio
async def test_each_scenario_hits_its_endpoints() -> None:
    catalog = _FakeCatalog()
    async with _client(catalog) as client:
        runner = LoadTestRunner(client, seed=7, page_size=25, run_id="t1")
        results = await runner.run(readers=1, writers=1, searchers=1, iterations=1)

    by_op = {r["operation"]: r for r in results}
    assert [r["operation"] for r in results] == [
        "list",
        "paginate",
        "search_gpu",
        "search_ram",
        "create",
        "delete",
    ]
    assert by_op["paginate"]["requests"] == 2
    assert all(r["errors"] == 0 for r in results)
    assert catalog.rows == []

    paths = [(r.method, r.url.path) for r in catalog.requests]
    assert ("DELETE", "/computer/load-t1-1") in paths
    gpu = next(p for m, p in paths if p.startswith("/computer/search/gpu/"))
    ram = next(p for m, p in paths if p.startswith("/computer/search/ram/"))
    assert gpu.rsplit("/", 1)[-1] in GPU_TERMS
    assert int(ram.rsplit("/", 1)[-1]) in RAM_CAPACITIES

    follow_up = [r for r in catalog.requests if "id" in r.url.params]
    assert follow_up[0].url.params["id"] == "7"
    assert follow_up[0].url.params["limit"] == "25"


@pytest.mark.asyncio
async def test_write_payload_is_a_valid_description() -> None:
    catalog = _FakeCatalog()
    async with _client(catalog) as client:
        await LoadTestRunner(client, run_id="t2").run(readers=0, writers=1, searchers=0, iterations=3)

    posts = [r for r in catalog.requests if r.method == "POST"]
    assert len(posts) == 3
    names = [json.loads(r.content)["name"] for r in posts]
    assert names == ["load-t2-1", "load-t2-2", "load-t2-3"]
    assert all(decode_description(r.content).ram.total_gb in RAM_CAPACITIES for r in posts)


@pytest.mark.asyncio
async def test_unexpected_status_is_counted_as_error() -> None:
    catalog = _FakeCatalog(delete_status=500)
    async with _client(catalog) as client:
        results = await LoadTestRunner(client).run(readers=0, writers=1, searchers=0, iterations=2)

    by_op = {r["operation"]: r for r in results}
    assert by_op["create"]["errors"] == 0
    assert by_op["delete"]["errors"] == 2
    assert by_op["delete"]["error_rate"] == 1.0


@pytest.mark.asyncio
async def test_transport_failures_are_counted_not_raised() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(refuse)) as client:
        results = await LoadTestRunner(client).run(readers=1, writers=1, searchers=0, iterations=1)

    by_op = {r["operation"]: r for r in results}
    # A failed first page or create ends the iteration early
    assert set(by_op) == {"list", "paginate", "create"}
    assert overall_error_rate(results) == 1.0


@pytest.mark.asyncio
async def test_run_load_test_stops_after_duration() -> None:
    catalog = _FakeCatalog()

    results = await run_load_test(
        BASE_URL + "/",
        duration_seconds=0.05,
        readers=1,
        writers=1,
        searchers=1,
        transport=httpx.MockTransport(catalog.handle),
    )

    assert {r["operation"] for r in results} >= {"list", "create", "search_gpu"}
    assert overall_error_rate(results) == 0.0
    assert all(r["requests"] >= 1 for r in results)


_RESULTS = [
    {
        "operation": "list",
        "requests": 100,
        "errors": 0,
        "error_rate": 0.0,
        "p50_ms": 4.2,
        "p95_ms": 9.8,
        "max_ms": 15.0,
        "p95_budget_ms": 500.0,
    },
    {
        "operation": "delete",
        "requests": 10,
        "errors": 5,
        "error_rate": 0.5,
        "p50_ms": 20.0,
        "p95_ms": 1200.0,
        "max_ms": 1300.0,
        "p95_budget_ms": 1000.0,
    },
]


def test_load_command_prints_table(monkeypatch) -> None:
    calls: list[dict[str, Any]] = []

    async def fake_run(base_url: str, **kwargs: Any) -> list[dict[str, Any]]:
        calls.append({"base_url": base_url, **kwargs})
        return _RESULTS[:1]

    monkeypatch.setattr(cli, "run_load_test", fake_run)

    result = CliRunner().invoke(
        cli.app, ["load", "--url", "http://catalog:8080", "--duration", "5", "--writers", "3"]
    )

    assert result.exit_code == 0
    assert "Load Test - Latency per Operation" in result.output
    assert calls[0]["base_url"] == "http://catalog:8080"
    assert calls[0]["duration_seconds"] == 5.0
    assert calls[0]["writers"] == 3


def test_load_command_fails_above_error_budget(monkeypatch) -> None:
    async def fake_run(base_url: str, **kwargs: Any) -> list[dict[str, Any]]:
        return _RESULTS

    monkeypatch.setattr(cli, "run_load_test", fake_run)

    result = CliRunner().invoke(cli.app, ["load", "--duration", "1"])

    assert result.exit_code == 1
