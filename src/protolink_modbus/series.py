"""Bounded per-channel history for trend display."""

from collections import deque
from datetime import datetime
from typing import Iterator

DEFAULT_CAPACITY = 120  # about one minute at a 500 ms poll


class TimeSeriesBuffer:
    """
    Fixed-capacity FIFO of (timestamp, value) pairs. Appending is the only
    mutator; once full, each append evicts the oldest entry.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._points: deque[tuple[datetime, float]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, timestamp: datetime, value: float) -> None:
        if self._points and timestamp < self._points[-1][0]:
            raise ValueError(f"timestamp {timestamp.isoformat()} is older than the newest point")
        self._points.append((timestamp, value))
        while len(self._points) > self._capacity:
            self._points.popleft()

    def range(self) -> tuple[datetime, datetime] | None:
        """Oldest and newest timestamp held, or None when empty."""
        if not self._points:
            return None
        return self._points[0][0], self._points[-1][0]

    def latest(self) -> tuple[datetime, float] | None:
        return self._points[-1] if self._points else None

    def values(self) -> list[float]:
        return [v for _ts, v in self._points]

    def __iter__(self) -> Iterator[tuple[datetime, float]]:
        return iter(list(self._points))

    def __len__(self) -> int:
        return len(self._points)
