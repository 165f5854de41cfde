"""Pydantic schemas for limitscope.

This module defines the data contracts handed to callers: the accounting
configuration, the container (cgroup) view of resources, and the unified
limits envelope used for scaling and pressure decisions.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from limitscope.core.constants import (
    DEFAULT_CGROUP_ROOT,
    DEFAULT_PRESSURE_THRESHOLD,
    DEFAULT_PROC_ROOT,
    MIN_CPU_INTERVAL_MS,
)


class CgroupVersion(str, Enum):
    """cgroup hierarchy available to the current process."""

    V1 = "v1"  # Per-controller hierarchies under /sys/fs/cgroup/<controller>
    V2 = "v2"  # Single unified hierarchy
    NONE = "none"  # No cgroup filesystem detected


class LimitSource(str, Enum):
    """Where a SystemLimits envelope came from."""

    HOST = "host"
    CGROUP_V1 = "cgroup_v1"
    CGROUP_V2 = "cgroup_v2"

    @classmethod
    def for_cgroup(cls, version: CgroupVersion) -> LimitSource:
        """Map a detected cgroup version to its limit source."""
        if version == CgroupVersion.V2:
            return cls.CGROUP_V2
        if version == CgroupVersion.V1:
            return cls.CGROUP_V1
        return cls.HOST


class AccountingConfig(BaseModel):
    """Configuration for a ResourceAccountant.

    Loaded from YAML/JSON via ``load_config`` or constructed directly.
    """

    cgroup_root: Path = Field(
        default=Path(DEFAULT_CGROUP_ROOT), description="Mount point of the cgroup filesystem"
    )
    proc_root: Path = Field(default=Path(DEFAULT_PROC_ROOT), description="Mount point of procfs")
    min_cpu_interval_ms: int = Field(
        default=MIN_CPU_INTERVAL_MS, ge=10, description="Shortest CPU measurement interval"
    )
    default_cpu_interval_ms: int = Field(
        default=1000, ge=10, description="CPU measurement interval when none is given"
    )
    cpu_pressure_threshold: float = Field(default=DEFAULT_PRESSURE_THRESHOLD, gt=0, le=1000)
    memory_pressure_threshold: float = Field(default=DEFAULT_PRESSURE_THRESHOLD, gt=0, le=1000)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def raise_default_interval_to_minimum(self) -> AccountingConfig:
        """Keep the default interval at or above the enforced minimum."""
        if self.default_cpu_interval_ms < self.min_cpu_interval_ms:
            self.default_cpu_interval_ms = self.min_cpu_interval_ms
        return self


class ContainerLimits(BaseModel):
    """Container resource limits and usage read from cgroups.

    Every optional field is ``None`` when the value is not available or not
    limited; zero always means "measured zero".

    Attributes:
        cgroup_version: Detected hierarchy
        cpu_quota_cores: CPU allowance in cores, never above the host core count
        memory_limit_bytes: Hard memory limit
        cpu_usage_cores: CPU usage rate in cores (needs two reads)
        memory_usage_bytes: Current memory usage
        cpu_throttled_count: Number of throttled CFS periods
        oom_kill_count: Number of OOM kills inside the cgroup
        diagnostics: Field name -> reason, for fields that could not be read
    """

    cgroup_version: CgroupVersion
    cpu_quota_cores: float | None = Field(default=None, gt=0)
    memory_limit_bytes: int | None = Field(default=None, gt=0)
    cpu_usage_cores: float | None = Field(default=None, ge=0)
    memory_usage_bytes: int | None = Field(default=None, ge=0)
    cpu_throttled_count: int | None = Field(default=None, ge=0)
    oom_kill_count: int | None = Field(default=None, ge=0)
    diagnostics: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def unlimited(cls, version: CgroupVersion = CgroupVersion.NONE) -> ContainerLimits:
        """Limits with every field absent."""
        return cls(cgroup_version=version)

    def has_cpu_limit(self) -> bool:
        return self.cpu_quota_cores is not None

    def has_memory_limit(self) -> bool:
        return self.memory_limit_bytes is not None

    def cpu_utilization_percentage(self) -> float | None:
        """CPU usage relative to quota (0-100), None without quota or usage."""
        if self.cpu_quota_cores is None or self.cpu_usage_cores is None:
            return None
        return min(100.0, self.cpu_usage_cores / self.cpu_quota_cores * 100.0)

    def memory_utilization_percentage(self) -> float | None:
        """Memory usage relative to limit (0-100), None without limit or usage."""
        if self.memory_limit_bytes is None or self.memory_usage_bytes is None:
            return None
        return min(100.0, self.memory_usage_bytes / self.memory_limit_bytes * 100.0)

    def available_cpu_cores(self) -> float | None:
        if self.cpu_quota_cores is None or self.cpu_usage_cores is None:
            return None
        return max(0.0, self.cpu_quota_cores - self.cpu_usage_cores)

    def available_memory_bytes(self) -> int | None:
        if self.memory_limit_bytes is None or self.memory_usage_bytes is None:
            return None
        return max(0, self.memory_limit_bytes - self.memory_usage_bytes)

    def is_cpu_throttled(self) -> bool:
        return self.cpu_throttled_count is not None and self.cpu_throttled_count > 0

    def has_oom_kills(self) -> bool:
        return self.oom_kill_count is not None and self.oom_kill_count > 0


class SystemLimits(BaseModel):
    """Unified resource envelope and current usage.

    Same shape whether the numbers come from the host or from a cgroup, so
    scaling decisions never exceed a container's allocation. All derived
    values are recomputed from the stored numbers on every call.
    """

    source: LimitSource
    cpu_cores: float = Field(ge=0, description="CPU capacity in cores")
    current_cpu_cores: float = Field(default=0.0, ge=0, description="CPU in use, in cores")
    memory_bytes: int = Field(ge=0, description="Memory capacity")
    current_memory_bytes: int = Field(default=0, ge=0, description="Memory in use")
    swap_bytes: int | None = Field(default=None, ge=0)
    current_swap_bytes: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def available_cpu_cores(self) -> float:
        return max(0.0, self.cpu_cores - self.current_cpu_cores)

    def available_memory_bytes(self) -> int:
        return max(0, self.memory_bytes - self.current_memory_bytes)

    def cpu_utilization(self) -> float:
        """CPU utilization percentage; exceeds 100 when over capacity."""
        if self.cpu_cores == 0:
            return 0.0
        return self.current_cpu_cores / self.cpu_cores * 100.0

    def memory_utilization(self) -> float:
        """Memory utilization percentage; exceeds 100 when over capacity."""
        if self.memory_bytes == 0:
            return 0.0
        return self.current_memory_bytes / self.memory_bytes * 100.0

    def swap_utilization(self) -> float | None:
        if self.swap_bytes is None or self.current_swap_bytes is None:
            return None
        if self.swap_bytes == 0:
            return 0.0
        return self.current_swap_bytes / self.swap_bytes * 100.0

    def cpu_headroom(self) -> float:
        """Unused CPU capacity in percent, clamped at 0."""
        return max(0.0, 100.0 - self.cpu_utilization())

    def memory_headroom(self) -> float:
        """Unused memory capacity in percent, clamped at 0."""
        return max(0.0, 100.0 - self.memory_utilization())

    def can_scale_cpu(self, additional_cores: float) -> bool:
        return self.available_cpu_cores() >= additional_cores

    def can_scale_memory(self, additional_bytes: int) -> bool:
        return self.available_memory_bytes() >= additional_bytes

    def is_cpu_pressure(self, threshold: float = DEFAULT_PRESSURE_THRESHOLD) -> bool:
        return self.cpu_utilization() >= threshold

    def is_memory_pressure(self, threshold: float = DEFAULT_PRESSURE_THRESHOLD) -> bool:
        return self.memory_utilization() >= threshold

    def is_containerized(self) -> bool:
        return self.source in (LimitSource.CGROUP_V1, LimitSource.CGROUP_V2)


class PressureReport(BaseModel):
    """Pressure flags for a SystemLimits envelope at configured thresholds."""

    source: LimitSource
    cpu_utilization: float
    memory_utilization: float
    cpu_pressure: bool
    memory_pressure: bool
