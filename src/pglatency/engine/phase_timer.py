# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Named monotonic checkpoints for one measurement cycle.

The timer reads ``time.perf_counter_ns`` by default, never the wall clock, so
clock adjustments cannot produce negative phase durations.
"""

from __future__ import annotations

import time
from collections.abc import Callable

CHECKPOINT_START = "start"
CHECKPOINT_ACQUIRED = "acquired"
CHECKPOINT_PINGED = "pinged"
CHECKPOINT_BULK_DONE = "bulk_done"
CHECKPOINT_DONE = "done"

_NS_PER_MS = 1_000_000.0


def round_trip_checkpoint(index: int) -> str:
    """Checkpoint name recorded after round trip ``index`` completes."""
    return f"round_trip_{index}"


class PhaseTimer:
    """Records a strictly increasing sequence of named monotonic timestamps.

    Example:
        >>> timer = PhaseTimer()
        >>> timer.mark("start")
        >>> timer.mark("acquired")
        >>> timer.elapsed_ms("start", "acquired") >= 0.0
        True
    """

    __slots__ = ("_checkpoints", "_clock", "_last_ns")

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns) -> None:
        """Initialize an empty timer.

        Args:
            clock: Monotonic nanosecond clock (injectable for tests).
        """
        self._clock = clock
        self._checkpoints: dict[str, int] = {}
        self._last_ns: int | None = None

    def mark(self, name: str) -> None:
        """Record checkpoint ``name`` at the current clock reading.

        A reading that does not advance past the previous checkpoint is
        nudged forward by one nanosecond to keep the sequence strictly
        increasing.

        Raises:
            ValueError: If ``name`` was already recorded.
        """
        if name in self._checkpoints:
            raise ValueError(f"Checkpoint '{name}' already recorded")
        now = self._clock()
        if self._last_ns is not None and now <= self._last_ns:
            now = self._last_ns + 1
        self._checkpoints[name] = now
        self._last_ns = now

    def elapsed_ms(self, start: str, end: str) -> float:
        """Return the non-negative duration between two checkpoints in ms.

        Raises:
            KeyError: If either checkpoint was not recorded.
        """
        delta_ns = self._checkpoints[end] - self._checkpoints[start]
        return abs(delta_ns) / _NS_PER_MS


__all__ = [
    "CHECKPOINT_ACQUIRED",
    "CHECKPOINT_BULK_DONE",
    "CHECKPOINT_DONE",
    "CHECKPOINT_PINGED",
    "CHECKPOINT_START",
    "PhaseTimer",
    "round_trip_checkpoint",
]
