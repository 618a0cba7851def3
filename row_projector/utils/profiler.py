"""
Profiling utilities for projection runs.

`profile_block` measures a block of code:
- Wall-clock time (perf_counter)
- CPU usage (psutil)
- Peak RSS via a background sampling thread (psutil)
- Peak Python allocations (tracemalloc)

Usage:
    from row_projector.utils.profiler import profile_block

    with profile_block("wikipedia") as stats:
        rows = project_all()

    print(stats.duration_seconds, stats.throughput(rows))
"""

from __future__ import annotations

import contextlib
import threading
import time
import tracemalloc
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    peak_traced_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)

    def throughput(self, rows: int) -> float:
        """Rows per second over the measured duration (0.0 for an empty window)."""
        return rows / self.duration_seconds if self.duration_seconds > 0 else 0.0


class _RssSampler(threading.Thread):
    """Daemon thread tracking the peak resident set size of this process."""

    def __init__(self, process: psutil.Process, interval_seconds: float) -> None:
        super().__init__(daemon=True)
        self._process = process
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self.peak_rss = process.memory_info().rss

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.peak_rss = max(self.peak_rss, self._process.memory_info().rss)
            except psutil.Error:
                break
            self._stop_event.wait(timeout=self._interval)

    def stop(self) -> int:
        self._stop_event.set()
        self.join(timeout=1.0)
        return self.peak_rss


@contextlib.contextmanager
def profile_block(
    label: str, sample_interval_ms: int = 50, enable_tracemalloc: bool = True
) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling.
    enable_tracemalloc : bool
        Whether to track Python-level allocations with tracemalloc.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()

    started_tracemalloc = enable_tracemalloc and not tracemalloc.is_tracing()
    if started_tracemalloc:
        tracemalloc.start()

    # cpu_percent needs a priming call
    process.cpu_percent(interval=None)
    sampler = _RssSampler(process, sample_interval_ms / 1000.0)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.peak_rss_bytes = sampler.stop() or None
        stats.cpu_percent = process.cpu_percent(interval=None)

        if enable_tracemalloc and tracemalloc.is_tracing():
            _, stats.peak_traced_bytes = tracemalloc.get_traced_memory()
            if started_tracemalloc:
                tracemalloc.stop()


__all__ = ["ProfileStats", "profile_block"]
