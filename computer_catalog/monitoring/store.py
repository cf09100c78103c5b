"""MetricsStore - bounded, thread-safe history of recent metrics snapshots.

Session-only memory: a deque capped at the configured capacity (20 by default)
behind a lock, so readers always get a whole, ordered copy and never a list
torn by a concurrent append.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List

from computer_catalog.monitoring.snapshot import MetricsSnapshot

DEFAULT_CAPACITY = 20


class MetricsStore:
    """Fixed-capacity FIFO of snapshots; the oldest is dropped on overflow."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._snapshots: Deque[MetricsSnapshot] = deque()
        self._lock = threading.Lock()

    def add(self, snapshot: MetricsSnapshot) -> None:
        """Append to the tail, evicting from the head beyond capacity.

        A snapshot stamped earlier than the current tail (wall clock stepped
        back) is re-stamped with the tail's timestamp so the history stays
        ordered.
        """
        with self._lock:
            if self._snapshots and snapshot.timestamp < self._snapshots[-1].timestamp:
                snapshot = snapshot.model_copy(
                    update={"timestamp": self._snapshots[-1].timestamp}
                )
            self._snapshots.append(snapshot)
            while len(self._snapshots) > self.capacity:
                self._snapshots.popleft()

    def get_all(self) -> List[MetricsSnapshot]:
        """Point-in-time copy, oldest first."""
        with self._lock:
            return list(self._snapshots)

    def clear(self) -> None:
        """Drop every snapshot. Used for testing."""
        with self._lock:
            self._snapshots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)


__all__ = ["DEFAULT_CAPACITY", "MetricsStore"]
