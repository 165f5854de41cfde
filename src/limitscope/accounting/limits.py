"""Unified limits: merge the host view and the container view.

A containerized workload must respect its allocation, not the host's. When
a cgroup is detected and it sets at least a CPU quota or a memory limit, the
envelope comes from the cgroup (falling back to host capacity for whichever
limit the cgroup leaves unset; usage always comes from the cgroup). Otherwise
it is the host's.
"""

from __future__ import annotations

import logging

from limitscope.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    LimitSource,
    PressureReport,
    SystemLimits,
)
from limitscope.providers.host import HostMemory

logger = logging.getLogger(__name__)


def uses_cgroup_limits(container: ContainerLimits | None) -> bool:
    """True when the container view should define the envelope."""
    if container is None or container.cgroup_version == CgroupVersion.NONE:
        return False
    return container.cpu_quota_cores is not None or container.memory_limit_bytes is not None


def resolve_system_limits(
    container: ContainerLimits | None,
    host_cpu_cores: float,
    host_memory: HostMemory,
    host_cpu_usage_cores: float | None = None,
) -> SystemLimits:
    """Build the unified limits envelope.

    Args:
        container: Container view, or None when cgroups do not apply
        host_cpu_cores: Host logical core count
        host_memory: Host memory totals
        host_cpu_usage_cores: Measured host CPU usage in cores, used only
            by the host view

    Returns:
        SystemLimits sourced from the cgroup or the host
    """
    swap_bytes = host_memory.swap_total_bytes
    current_swap = host_memory.swap_used_bytes

    if container is not None and uses_cgroup_limits(container):
        # Host-wide usage says nothing about the cgroup; unknown usage is 0
        limits = SystemLimits(
            source=LimitSource.for_cgroup(container.cgroup_version),
            cpu_cores=container.cpu_quota_cores or host_cpu_cores,
            current_cpu_cores=container.cpu_usage_cores or 0.0,
            memory_bytes=container.memory_limit_bytes or host_memory.total_bytes,
            current_memory_bytes=container.memory_usage_bytes or 0,
            swap_bytes=swap_bytes,
            current_swap_bytes=current_swap,
        )
    else:
        limits = SystemLimits(
            source=LimitSource.HOST,
            cpu_cores=host_cpu_cores,
            current_cpu_cores=host_cpu_usage_cores or 0.0,
            memory_bytes=host_memory.total_bytes,
            current_memory_bytes=host_memory.used_bytes,
            swap_bytes=swap_bytes,
            current_swap_bytes=current_swap,
        )

    logger.debug(
        f"System limits from {limits.source.value}: "
        f"{limits.cpu_cores:.2f} cores, {limits.memory_bytes} bytes"
    )
    return limits


def pressure_report(
    limits: SystemLimits, cpu_threshold: float, memory_threshold: float
) -> PressureReport:
    """Evaluate CPU and memory pressure of an envelope at the given thresholds."""
    return PressureReport(
        source=limits.source,
        cpu_utilization=limits.cpu_utilization(),
        memory_utilization=limits.memory_utilization(),
        cpu_pressure=limits.is_cpu_pressure(cpu_threshold),
        memory_pressure=limits.is_memory_pressure(memory_threshold),
    )
