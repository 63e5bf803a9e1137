"""
Opt-in timing of parser chunks and generator runs.

Each parsed chunk is recorded under ``parse_chunk`` with its character and
token counts; each ``generate_object`` call is recorded under
``generate_object`` with the number of values it wrote. Recording starts
disabled unless assertions are on and ``JZSTREAM_PROFILE`` is set in the
environment, and can be switched at runtime with ``set_profiling``.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

_enabled = __debug__ and "JZSTREAM_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings for one profiled operation."""

    operation: str
    call_count: int = 0
    total_time_ns: int = 0
    chars_processed: int = 0
    items_processed: int = 0

    def record_call(self, duration_ns: int, chars: int, items: int) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.chars_processed += chars
        self.items_processed += items


_hot_path_stats: dict[str, HotPathStats] = {}


def set_profiling(enabled: bool) -> None:
    """Turns recording on or off for every session in the process."""
    global _enabled
    _enabled = bool(enabled)


def profiling_enabled() -> bool:
    return _enabled


class ProfileContext:
    """
    Times one operation when profiling is on.

    The caller adds to ``items`` while the block runs: tokens for a parsed
    chunk, values for a generated object. Nothing is timed or recorded when
    profiling was off on entry.
    """

    def __init__(self, operation: str, chars: int = 0) -> None:
        self.operation = operation
        self.chars = chars
        self.items = 0
        self._start_ns: int | None = None

    def __enter__(self) -> "ProfileContext":
        if _enabled:
            self._start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._start_ns is None:
            return
        duration = time.perf_counter_ns() - self._start_ns
        stats = _hot_path_stats.get(self.operation)
        if stats is None:
            stats = _hot_path_stats[self.operation] = HotPathStats(
                self.operation
            )
        stats.record_call(duration, self.chars, self.items)


def get_hot_path_stats() -> dict[str, HotPathStats]:
    """Returns a snapshot of the recorded statistics."""
    return dict(_hot_path_stats)


def clear_hot_path_stats() -> None:
    _hot_path_stats.clear()
