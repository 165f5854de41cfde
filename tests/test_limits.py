"""Tests for unified limits resolution and the limit schemas."""

import pytest
from pydantic import ValidationError

from limitscope.accounting.limits import (
    pressure_report,
    resolve_system_limits,
    uses_cgroup_limits,
)
from limitscope.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    LimitSource,
    SystemLimits,
)
from limitscope.providers.host import HostMemory

GiB = 1024**3


@pytest.fixture
def host_memory() -> HostMemory:
    return HostMemory(
        total_bytes=16 * GiB,
        available_bytes=12 * GiB,
        used_bytes=4 * GiB,
        swap_total_bytes=2 * GiB,
        swap_used_bytes=GiB // 2,
    )


class TestContainerLimits:
    """Tests for ContainerLimits derived values."""

    def test_utilization_clamped(self) -> None:
        """Test bursty usage above quota reports at most 100%."""
        limits = ContainerLimits(
            cgroup_version=CgroupVersion.V2, cpu_quota_cores=1.0, cpu_usage_cores=1.3
        )
        assert limits.cpu_utilization_percentage() == 100.0
        assert limits.available_cpu_cores() == 0.0

    def test_zero_limit_rejected(self) -> None:
        """Test a zero limit cannot be represented; absent means None."""
        with pytest.raises(ValidationError):
            ContainerLimits(cgroup_version=CgroupVersion.V2, memory_limit_bytes=0)

    def test_frozen(self) -> None:
        """Test limits are immutable values."""
        limits = ContainerLimits.unlimited()
        with pytest.raises(ValidationError):
            limits.cpu_quota_cores = 2.0


class TestSystemLimits:
    """Tests for SystemLimits scaling and pressure queries."""

    def test_half_core_quota(self) -> None:
        """Test 0.4 of 0.5 cores is 80% used with 20% headroom."""
        limits = SystemLimits(
            source=LimitSource.CGROUP_V2,
            cpu_cores=0.5,
            current_cpu_cores=0.4,
            memory_bytes=GiB,
            current_memory_bytes=GiB // 4,
        )

        assert limits.cpu_utilization() == pytest.approx(80.0)
        assert limits.cpu_headroom() == pytest.approx(20.0)
        assert limits.available_cpu_cores() == pytest.approx(0.1)
        assert not limits.can_scale_cpu(0.2)
        assert limits.can_scale_cpu(0.05)
        assert limits.is_cpu_pressure()
        assert not limits.is_memory_pressure()
        assert limits.is_containerized()

    def test_over_capacity(self) -> None:
        """Test utilization above 100% is reported and headroom clamps at 0."""
        limits = SystemLimits(
            source=LimitSource.HOST,
            cpu_cores=2.0,
            current_cpu_cores=3.0,
            memory_bytes=100,
            current_memory_bytes=150,
        )

        assert limits.cpu_utilization() == pytest.approx(150.0)
        assert limits.cpu_headroom() == 0.0
        assert limits.available_memory_bytes() == 0
        assert not limits.can_scale_memory(1)

    def test_zero_capacity(self) -> None:
        """Test zero capacity reports 0% rather than dividing by zero."""
        limits = SystemLimits(source=LimitSource.HOST, cpu_cores=0.0, memory_bytes=0)

        assert limits.cpu_utilization() == 0.0
        assert limits.memory_utilization() == 0.0
        assert limits.swap_utilization() is None

    def test_pressure_threshold(self) -> None:
        """Test pressure uses >= against the threshold."""
        limits = SystemLimits(
            source=LimitSource.HOST,
            cpu_cores=4.0,
            current_cpu_cores=2.0,
            memory_bytes=100,
            current_memory_bytes=50,
        )

        assert limits.is_cpu_pressure(50.0)
        assert not limits.is_cpu_pressure(50.1)
        assert limits.is_memory_pressure(threshold=50.0)


class TestResolveSystemLimits:
    """Tests for choosing between host and cgroup limits."""

    def test_host_when_no_container(self, host_memory) -> None:
        """Test no container view means the host envelope."""
        limits = resolve_system_limits(None, host_cpu_cores=8, host_memory=host_memory)

        assert limits.source == LimitSource.HOST
        assert limits.cpu_cores == 8.0
        assert limits.current_cpu_cores == 0.0
        assert limits.memory_bytes == 16 * GiB
        assert limits.current_memory_bytes == 4 * GiB
        assert limits.swap_utilization() == pytest.approx(25.0)
        assert not limits.is_containerized()

    def test_host_when_cgroup_sets_no_limits(self, host_memory) -> None:
        """Test an unconstrained cgroup does not shrink the envelope."""
        container = ContainerLimits(cgroup_version=CgroupVersion.V2, memory_usage_bytes=GiB)

        assert not uses_cgroup_limits(container)
        limits = resolve_system_limits(
            container, host_cpu_cores=8, host_memory=host_memory, host_cpu_usage_cores=2.5
        )
        assert limits.source == LimitSource.HOST
        assert limits.current_cpu_cores == pytest.approx(2.5)

    def test_cgroup_limits_win(self, host_memory) -> None:
        """Test a CPU quota and memory limit define the envelope."""
        container = ContainerLimits(
            cgroup_version=CgroupVersion.V1,
            cpu_quota_cores=0.5,
            memory_limit_bytes=GiB,
            cpu_usage_cores=0.4,
            memory_usage_bytes=GiB // 2,
        )

        limits = resolve_system_limits(container, host_cpu_cores=8, host_memory=host_memory)

        assert limits.source == LimitSource.CGROUP_V1
        assert limits.cpu_cores == pytest.approx(0.5)
        assert limits.memory_bytes == GiB
        assert limits.cpu_utilization() == pytest.approx(80.0)
        assert limits.memory_utilization() == pytest.approx(50.0)

    def test_partial_cgroup_limits_fill_capacity_from_host(self, host_memory) -> None:
        """Test a memory-only limit keeps the host CPU count but not host usage."""
        container = ContainerLimits(cgroup_version=CgroupVersion.V2, memory_limit_bytes=2 * GiB)

        limits = resolve_system_limits(
            container, host_cpu_cores=4, host_memory=host_memory, host_cpu_usage_cores=1.0
        )

        assert limits.source == LimitSource.CGROUP_V2
        assert limits.cpu_cores == 4.0
        assert limits.current_cpu_cores == 0.0
        assert limits.memory_bytes == 2 * GiB
        assert limits.current_memory_bytes == 0

    def test_busy_host_does_not_pressure_idle_container(self) -> None:
        """Test host-wide usage is never charged against a container allocation."""
        busy_host = HostMemory(total_bytes=64 * GiB, available_bytes=16 * GiB, used_bytes=48 * GiB)
        container = ContainerLimits(
            cgroup_version=CgroupVersion.V2, cpu_quota_cores=0.5, memory_limit_bytes=GiB
        )

        limits = resolve_system_limits(
            container, host_cpu_cores=16, host_memory=busy_host, host_cpu_usage_cores=12.0
        )

        assert limits.cpu_utilization() == 0.0
        assert limits.memory_utilization() == 0.0
        assert not limits.is_cpu_pressure()
        assert not limits.is_memory_pressure()
        assert limits.can_scale_cpu(0.5)

    def test_pressure_report(self, host_memory) -> None:
        """Test pressure flags follow the given thresholds."""
        limits = SystemLimits(
            source=LimitSource.HOST,
            cpu_cores=1.0,
            current_cpu_cores=0.9,
            memory_bytes=100,
            current_memory_bytes=10,
        )

        report = pressure_report(limits, cpu_threshold=85.0, memory_threshold=5.0)

        assert report.cpu_pressure
        assert report.memory_pressure
        assert report.cpu_utilization == pytest.approx(90.0)
