"""FastAPI dependencies resolving the services wired at startup."""

from __future__ import annotations

from fastapi import Request

from computer_catalog.monitoring.registry import MeterRegistry
from computer_catalog.monitoring.store import MetricsStore
from computer_catalog.services.abstract import ComputerReader, ComputerWriter


def get_reader(request: Request) -> ComputerReader:
    """Replica-bound read service."""
    return request.app.state.read_service


def get_writer(request: Request) -> ComputerWriter:
    """Primary-bound write service."""
    return request.app.state.write_service


def get_metrics_store(request: Request) -> MetricsStore:
    return request.app.state.metrics_store


def get_meters(request: Request) -> MeterRegistry:
    return request.app.state.meters


__all__ = ["get_meters", "get_metrics_store", "get_reader", "get_writer"]
