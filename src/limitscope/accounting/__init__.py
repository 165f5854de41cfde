"""Accounting module - CPU deltas, unified limits and the accountant.

Provides:
- calculate_cpu_delta / measure_cpu_delta: usage from two CPU snapshots
- resolve_system_limits: host vs. container envelope
- ResourceAccountant: owns the caches and wires providers together
"""

from __future__ import annotations

from limitscope.accounting.cpu import (
    CpuCoreDelta,
    CpuCoreTimes,
    CpuDelta,
    CpuSnapshot,
    CpuTimes,
    calculate_cpu_delta,
    measure_cpu_delta,
)
from limitscope.accounting.limits import (
    pressure_report,
    resolve_system_limits,
    uses_cgroup_limits,
)
from limitscope.accounting.accountant import ResourceAccountant

__all__ = [
    "calculate_cpu_delta",
    "CpuCoreDelta",
    "CpuCoreTimes",
    "CpuDelta",
    "CpuSnapshot",
    "CpuTimes",
    "measure_cpu_delta",
    "pressure_report",
    "ResourceAccountant",
    "resolve_system_limits",
    "uses_cgroup_limits",
]
