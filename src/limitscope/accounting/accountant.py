"""Resource accountant: the entry point for limit and usage accounting.

A ResourceAccountant owns every piece of mutable state the engine needs
(detected cgroup version, v1 controller mappings, CPU usage rate samples),
so two accountants never share caches. Use one accountant per thread.

Example:
    ```python
    accountant = ResourceAccountant()
    accountant.container_limits()          # first read primes the CPU rate
    limits = accountant.system_limits()
    if limits.can_scale_cpu(0.5):
        ...
    delta = accountant.cpu_usage(interval_seconds=1.0)
    print(f"CPU usage: {delta.usage_percentage():.1f}%")
    ```
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable

from limitscope.accounting.cpu import CpuDelta, CpuSnapshot, measure_cpu_delta
from limitscope.accounting.limits import pressure_report, resolve_system_limits
from limitscope.cgroups.locator import CgroupLocator
from limitscope.cgroups.parser import CgroupQuotaParser
from limitscope.cgroups.rates import RateCache
from limitscope.core.exceptions import UnsupportedPlatformError
from limitscope.core.schemas import (
    AccountingConfig,
    CgroupVersion,
    ContainerLimits,
    PressureReport,
    SystemLimits,
)
from limitscope.providers.base import Provider
from limitscope.providers.composite import FallbackResolver
from limitscope.providers.cpu import MinimalCpuSource, ProcStatCpuSource, PsutilCpuSource
from limitscope.providers.files import FileReader
from limitscope.providers.host import (
    HostMemory,
    OsCoreCountSource,
    ProcCpuinfoCoreCountSource,
    ProcMeminfoSource,
    PsutilCoreCountSource,
    PsutilMemorySource,
)

logger = logging.getLogger(__name__)


def is_linux(platform: str) -> bool:
    return platform.startswith("linux")


class ResourceAccountant:
    """Reads container and host resources and turns them into limits.

    All collaborators can be injected for testing: the file reader, the CPU
    snapshot / memory / core count providers, the clock used for rate
    samples, the sleep used between CPU snapshots, and the platform name.
    """

    def __init__(
        self,
        config: AccountingConfig | None = None,
        *,
        reader: FileReader | None = None,
        cpu_source: Provider[CpuSnapshot] | None = None,
        memory_source: Provider[HostMemory] | None = None,
        core_count_source: Provider[int] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        platform: str = sys.platform,
    ) -> None:
        self._config = config or AccountingConfig()
        self._reader = reader or FileReader()
        self._platform = platform
        self._sleep = sleep
        linux = is_linux(platform)
        proc_root = self._config.proc_root

        self._cpu_source = cpu_source or FallbackResolver(
            [ProcStatCpuSource(self._reader, proc_root), PsutilCpuSource(), MinimalCpuSource()]
            if linux
            else [PsutilCpuSource(), MinimalCpuSource()],
            metric="cpu",
        )
        self._memory_source = memory_source or FallbackResolver(
            [ProcMeminfoSource(self._reader, proc_root), PsutilMemorySource()]
            if linux
            else [PsutilMemorySource()],
            metric="memory",
        )
        self._core_count_source = core_count_source or FallbackResolver(
            [
                ProcCpuinfoCoreCountSource(self._reader, proc_root),
                PsutilCoreCountSource(),
                OsCoreCountSource(),
            ]
            if linux
            else [PsutilCoreCountSource(), OsCoreCountSource()],
            metric="core_count",
        )

        self._rate_cache = RateCache()
        self._locator = CgroupLocator(
            self._reader, cgroup_root=self._config.cgroup_root, proc_root=proc_root
        )
        self._parser = CgroupQuotaParser(
            self._locator, self._reader, rate_cache=self._rate_cache, clock=clock
        )

    @property
    def config(self) -> AccountingConfig:
        return self._config

    @property
    def rate_cache(self) -> RateCache:
        return self._rate_cache

    @property
    def is_linux(self) -> bool:
        return is_linux(self._platform)

    def reset(self) -> None:
        """Forget the detected cgroup layout and all CPU rate samples."""
        self._locator.reset()
        self._rate_cache.clear()

    def _require_linux(self) -> None:
        if not self.is_linux:
            raise UnsupportedPlatformError(self._platform)

    # -- host ---------------------------------------------------------------

    def host_cpu_cores(self) -> int:
        """Logical core count of the host."""
        return self._core_count_source.read()

    def host_memory(self) -> HostMemory:
        return self._memory_source.read()

    def cpu_snapshot(self) -> CpuSnapshot:
        return self._cpu_source.read()

    def cpu_usage(self, interval_seconds: float | None = None) -> CpuDelta:
        """Measure host CPU usage over a blocking interval.

        Args:
            interval_seconds: Time between the two snapshots; defaults to the
                configured interval and is raised to the configured minimum
        """
        if interval_seconds is None:
            interval_seconds = self._config.default_cpu_interval_ms / 1000
        return measure_cpu_delta(
            self.cpu_snapshot,
            interval_seconds,
            min_interval_seconds=self._config.min_cpu_interval_ms / 1000,
            sleep=self._sleep,
        )

    # -- cgroups ------------------------------------------------------------

    def cgroup_version(self) -> CgroupVersion:
        """Detected cgroup version.

        Raises:
            UnsupportedPlatformError: On non-Linux hosts
        """
        self._require_linux()
        return self._locator.detect()

    def container_limits(self) -> ContainerLimits:
        """Container limits and usage from cgroups.

        ``cpu_usage_cores`` needs two calls on the same accountant: the first
        stores a counter sample, later calls report the rate since the
        previous one.

        Raises:
            UnsupportedPlatformError: On non-Linux hosts
            UnreadableError: If /proc/self/cgroup cannot be read
        """
        self._require_linux()
        return self._parser.parse(float(self.host_cpu_cores()))

    # -- unified ------------------------------------------------------------

    def system_limits(self, cpu_interval_seconds: float | None = None) -> SystemLimits:
        """Unified resource envelope for scaling decisions.

        Args:
            cpu_interval_seconds: When given, CPU usage is measured over this
                interval: the host from two CPU snapshots, the container from
                cgroup counter reads taken before and after the same wait.
                Without it, host envelopes report 0 current cores and the
                cgroup view reports whatever rate earlier reads allow.
        """
        host_cores = float(self.host_cpu_cores())
        container = None
        host_usage = None

        if cpu_interval_seconds is not None:
            if self.is_linux:
                # Seed the cgroup usage counter so the second parse has a rate
                self._parser.parse(host_cores)
            host_usage = self.cpu_usage(cpu_interval_seconds).busy_cores()

        if self.is_linux:
            container = self._parser.parse(host_cores)
        else:
            logger.debug(f"Skipping cgroup accounting on {self._platform}")

        return resolve_system_limits(
            container,
            host_cpu_cores=host_cores,
            host_memory=self.host_memory(),
            host_cpu_usage_cores=host_usage,
        )

    def pressure(self, limits: SystemLimits | None = None) -> PressureReport:
        """Pressure flags at the configured thresholds."""
        if limits is None:
            limits = self.system_limits()
        return pressure_report(
            limits,
            cpu_threshold=self._config.cpu_pressure_threshold,
            memory_threshold=self._config.memory_pressure_threshold,
        )
