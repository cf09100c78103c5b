from __future__ import annotations

import asyncio
import sys
from typing import Optional

import httpx
import typer
import uvicorn

from computer_catalog.config import get_settings
from computer_catalog.loadtest import overall_error_rate, run_load_test
from computer_catalog.reporter import print_load_results, print_settings, print_snapshots
from computer_catalog.utils.logging import configure_logging

app = typer.Typer(help="Computer Catalog service CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    print_settings(get_settings())


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default from settings)."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development)."),
) -> None:
    """
    Run the HTTP service.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    uvicorn.run(
        "computer_catalog.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


@app.command()
def report(
    url: str = typer.Option(
        "http://localhost:8080",
        "--url",
        "-u",
        help="Base URL of a running Computer Catalog service.",
    ),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout in seconds."),
) -> None:
    """
    Fetch the SSR snapshot history from a running service and print it.
    """
    try:
        response = httpx.get(f"{url.rstrip('/')}/ssr/data", timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        typer.echo(f"Could not fetch metrics from {url}: {exc}", err=True)
        raise typer.Exit(code=1)
    print_snapshots(response.json())


@app.command()
def load(
    url: str = typer.Option(
        "http://localhost:8080",
        "--url",
        "-u",
        help="Base URL of a running Computer Catalog service.",
    ),
    duration: float = typer.Option(30.0, "--duration", "-d", help="Seconds each worker keeps running."),
    readers: int = typer.Option(8, "--readers", help="Concurrent read workers (list + pagination)."),
    writers: int = typer.Option(2, "--writers", help="Concurrent write workers (create + delete)."),
    searchers: int = typer.Option(4, "--searchers", help="Concurrent search workers (GPU + RAM)."),
    page_size: int = typer.Option(50, "--page-size", help="Rows per pagination request."),
    seed: int = typer.Option(42, "--seed", help="Seed for payloads and search terms."),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout in seconds."),
    max_error_rate: float = typer.Option(
        0.01, "--max-error-rate", help="Exit with code 1 when the overall error rate is above this."
    ),
) -> None:
    """
    Drive read, write and search traffic at a running service and print latencies.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    results = asyncio.run(
        run_load_test(
            url,
            duration_seconds=duration,
            readers=readers,
            writers=writers,
            searchers=searchers,
            page_size=page_size,
            seed=seed,
            timeout=timeout,
        )
    )
    error_rate = overall_error_rate(results)
    print_load_results(results, caption=f"{url} for {duration:g}s, error rate {error_rate:.2%}")
    if error_rate > max_error_rate:
        typer.echo(
            f"Error rate {error_rate:.2%} is above the allowed {max_error_rate:.2%}", err=True
        )
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
