"""Shared constants for limitscope.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Default mount points for the cgroup filesystem and procfs.
DEFAULT_CGROUP_ROOT = "/sys/fs/cgroup"
DEFAULT_PROC_ROOT = "/proc"

# Marker file present only at the root of a cgroup v2 (unified) hierarchy.
CGROUP_V2_MARKER = "cgroup.controllers"

# Per-process controller list, relative to the proc root.
PROC_SELF_CGROUP = "self/cgroup"

# cgroup v2 literal for "no limit" in cpu.max / memory.max.
CGROUP_NO_LIMIT = "max"

# cgroup v1 reports an unlimited memory.limit_in_bytes as a page-aligned
# LONG_MAX (~9.2e18). Anything at or above this is treated as "no limit".
CGROUP_V1_UNLIMITED_MEMORY = 9_000_000_000_000_000_000

# Divisors converting cumulative CPU usage counters to CPU seconds.
USEC_PER_SECOND = 1_000_000  # cgroup v2 cpu.stat usage_usec
NSEC_PER_SECOND = 1_000_000_000  # cgroup v1 cpuacct.usage

# psutil reports CPU times in seconds; snapshots store integer ticks.
CPU_TICKS_PER_SECOND = 100

# Shortest interval accepted between two CPU snapshots.
MIN_CPU_INTERVAL_MS = 100

DEFAULT_PRESSURE_THRESHOLD = 80.0
