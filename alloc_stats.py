"""
alloc_stats.py

Process memory counters sampled after each file.

HDF5's own allocation statistics (H5get_alloc_stats) are not exposed through h5py and only
report real numbers on debug builds, so the process-wide figures from psutil are used:

    total_alloc_bytes  virtual memory size
    curr_alloc_bytes   resident set size
    peak_alloc_bytes   highest resident set size seen so far
"""
import os
import sys
from dataclasses import dataclass

import psutil

from volume_errors import StatsError


@dataclass(frozen=True)
class AllocationSnapshot:
    total_alloc_bytes: int
    curr_alloc_bytes: int
    peak_alloc_bytes: int


def os_peak_rss(mem_info=None) -> int:
    """High-water mark of the resident set as reported by the OS, 0 if unavailable."""
    # Windows reports it directly
    peak = getattr(mem_info, "peak_wset", None)
    if peak is not None:
        return int(peak)
    try:
        import resource
    except ImportError:
        return 0
    maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # kilobytes on Linux, bytes on macOS
    if sys.platform == "darwin":
        return int(maxrss)
    return int(maxrss) * 1024


class AllocationProbe:
    """Reads memory counters for one process. Peak never decreases between snapshots."""

    def __init__(self, process=None, use_os_peak=True):
        self._process = process if process is not None else psutil.Process(os.getpid())
        self._use_os_peak = use_os_peak
        self._peak = 0

    def snapshot(self) -> AllocationSnapshot:
        try:
            mem = self._process.memory_info()
        except psutil.Error as e:
            raise StatsError(f"Cannot read process memory counters: {e}") from e

        peak = max(self._peak, int(mem.rss))
        if self._use_os_peak:
            peak = max(peak, os_peak_rss(mem))
        self._peak = peak
        return AllocationSnapshot(
            total_alloc_bytes=int(mem.vms),
            curr_alloc_bytes=int(mem.rss),
            peak_alloc_bytes=peak,
        )
