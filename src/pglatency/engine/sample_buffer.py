# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bounded FIFO history of measurements.

Single writer (the scheduler), many readers (HTTP handlers). Appends and
snapshots are serialized by a short non-blocking critical section, so a
reader always sees the state either before or after an append, never a torn
one. Snapshots are immutable tuples, oldest first.

At the default capacity of 400 and a 45 second cadence the buffer retains a
trailing window of roughly five hours.
"""

from __future__ import annotations

import threading
from collections import deque

from pglatency.models import ModelFailure, ModelSample

DEFAULT_CAPACITY = 400


class SampleBuffer:
    """Fixed-capacity ordered buffer with oldest-first eviction.

    Example:
        >>> buffer = SampleBuffer(capacity=3)
        >>> buffer.append(sample)
        >>> len(buffer.snapshot())
        1
    """

    __slots__ = ("_appended_total", "_capacity", "_items", "_lock")

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty buffer.

        Raises:
            ValueError: If ``capacity`` is less than 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._items: deque[ModelSample | ModelFailure] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._appended_total = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def appended_total(self) -> int:
        """Measurements appended since startup, including evicted ones."""
        return self._appended_total

    @property
    def evicted_total(self) -> int:
        """Measurements dropped by FIFO eviction since startup."""
        return max(0, self._appended_total - self._capacity)

    def __len__(self) -> int:
        return len(self._items)

    def append(
        self, measurement: ModelSample | ModelFailure
    ) -> ModelSample | ModelFailure | None:
        """Append a measurement, evicting the oldest one at capacity.

        Returns:
            The evicted measurement, or ``None`` if nothing was evicted.
        """
        with self._lock:
            evicted = self._items[0] if len(self._items) == self._capacity else None
            self._items.append(measurement)
            self._appended_total += 1
        return evicted

    def snapshot(self) -> tuple[ModelSample | ModelFailure, ...]:
        """Return an immutable point-in-time copy, oldest first."""
        with self._lock:
            return tuple(self._items)

    def failures(self) -> tuple[ModelFailure, ...]:
        """Return only the Failure entries, oldest first."""
        return tuple(m for m in self.snapshot() if isinstance(m, ModelFailure))


__all__: list[str] = ["DEFAULT_CAPACITY", "SampleBuffer"]
