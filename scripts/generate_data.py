"""
Data generation and loading script for the Computer Catalog.

Implements deterministic pseudo-random computer builds, CSV emission, and
Postgres COPY loading into the primary. Every generated description is a valid
`ComputerDescription` document.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from decimal import Decimal
from pathlib import Path

import psycopg
import typer

from computer_catalog.config import get_settings
from computer_catalog.domain.description import (
    Case,
    ComputerDescription,
    Motherboard,
    PowerSupply,
    Ram,
    RamModule,
    Storage,
    StorageDevice,
    VideoCard,
    encode_description,
)

app = typer.Typer(help="Generate synthetic computer builds and load into Postgres (CSV + COPY).")

CSV_HEADER = ["name", "price", "description"]

_GPUS = [
    ("NVIDIA", "GeForce RTX 4060", 8),
    ("NVIDIA", "GeForce RTX 4070 Super", 12),
    ("NVIDIA", "GeForce RTX 4090", 24),
    ("AMD", "Radeon RX 7600", 8),
    ("AMD", "Radeon RX 7800 XT", 16),
    ("Intel", "Arc A770", 16),
]
_MODULE_SIZES_GB = [8, 16, 32]
_SOCKETS = [("AM5", "B650"), ("AM4", "B550"), ("LGA1700", "Z790")]
_CASE_TYPES = ["Mid Tower", "Full Tower", "SFF"]
_STORAGE_KINDS = [("NVMe", "PCIe 4.0"), ("SSD", "SATA III"), ("HDD", "SATA III")]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return get_settings().primary_database_url


def _random_description(rng: random.Random, index: int) -> ComputerDescription:
    gpu_vendor, gpu_model, gpu_memory = rng.choice(_GPUS)
    module_size = rng.choice(_MODULE_SIZES_GB)
    module_count = rng.choice([1, 2, 4])
    socket, chipset = rng.choice(_SOCKETS)
    kind, interface = rng.choice(_STORAGE_KINDS)
    disk_gb = rng.choice([512, 1000, 2000])

    return ComputerDescription(
        name=f"build-{index:06d}",
        price=Decimal(rng.randint(250_000, 2_500_000)) / 100,
        power_supply=PowerSupply(
            model=f"PSU-{rng.randint(500, 1200)}",
            wattage=rng.choice([550, 650, 750, 850, 1000]),
            certification=rng.choice(["80 Plus Bronze", "80 Plus Gold", "80 Plus Platinum"]),
            modular=rng.choice([True, False]),
        ),
        motherboard=Motherboard(
            model=f"{chipset}-PRO",
            socket=socket,
            chipset=chipset,
            form_factor=rng.choice(["ATX", "Micro-ATX", "Mini-ITX"]),
            ram_slots=4,
            max_ram_gb=128,
        ),
        video_card=VideoCard(model=gpu_model, manufacturer=gpu_vendor, memory_gb=gpu_memory),
        ram=Ram(
            total_gb=module_size * module_count,
            modules=[
                RamModule(capacity_gb=module_size, generation="DDR5", frequency_mhz=5600)
                for _ in range(module_count)
            ],
        ),
        storage=Storage(
            total_gb=disk_gb,
            devices=[StorageDevice(kind=kind, capacity_gb=disk_gb, bus_interface=interface)],
        ),
        case=Case(kind=rng.choice(_CASE_TYPES), color=rng.choice(["black", "white"])),
    )


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int) -> None:
    rng = random.Random(seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)

        buffer: list[list[str]] = []
        for i in range(rows):
            desc = _random_description(rng, i)
            buffer.append([desc.name, str(desc.price), encode_description(desc)])
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path) -> None:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                """
                COPY public.computers (name, price, description)
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of computers to generate.",
    ),
    batch_size: int = typer.Option(
        500,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override (defaults to the primary datasource).",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic computer builds and optionally load them into the primary using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="computers_csv_"))
        csv_path = tmpdir / "computers.csv"

    typer.echo(f"Generating {rows:,} computers -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed)
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into the primary via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path)
    typer.echo(f"Load completed in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
