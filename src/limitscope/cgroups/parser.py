"""cgroup limit and usage parsing.

Files read per version:

    field              v2                       v1
    cpu quota          cpu.max                  cpu.cfs_quota_us / cpu.cfs_period_us
    memory limit       memory.max               memory.limit_in_bytes
    cpu usage (rate)   cpu.stat usage_usec      cpuacct.usage (ns)
    memory usage       memory.current           memory.usage_in_bytes
    throttled periods  cpu.stat nr_throttled    cpu.stat nr_throttled
    oom kills          memory.events oom_kill   memory.oom_control oom_kill

Every field is resolved independently. A missing file or key leaves that
field as None; an unreadable or malformed file also leaves it None and is
recorded in ``ContainerLimits.diagnostics``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from limitscope.cgroups.locator import CgroupLocator
from limitscope.cgroups.rates import RateCache
from limitscope.core.constants import (
    CGROUP_NO_LIMIT,
    CGROUP_V1_UNLIMITED_MEMORY,
    NSEC_PER_SECOND,
    USEC_PER_SECOND,
)
from limitscope.core.exceptions import (
    FileMissingError,
    MalformedError,
    UnreadableError,
)
from limitscope.core.schemas import CgroupVersion, ContainerLimits
from limitscope.providers.files import FileReader

logger = logging.getLogger(__name__)


def parse_int(field: str, text: str) -> int:
    """Parse a single integer value file."""
    value = text.strip()
    try:
        return int(value)
    except ValueError as e:
        raise MalformedError(field, text, "expected an integer") from e


def stat_value(field: str, text: str, key: str) -> int | None:
    """Look up one key in a flat-keyed stat file (cpu.stat, memory.events, ...).

    Format:
        usage_usec 123456
        nr_throttled 7

    Other lines are ignored whatever their shape, so one odd entry never hides
    the key being asked for.

    Returns:
        The integer value, or None when the key is not present

    Raises:
        MalformedError: If the key is present with a non-integer value
    """
    for line in text.splitlines():
        parts = line.split()
        if len(parts) == 2 and parts[0] == key:
            return parse_int(f"{field} {key}", parts[1])
    return None


def cpu_max_to_cores(text: str, host_cpu_cores: float) -> float | None:
    """Convert cgroup v2 ``cpu.max`` ("<quota> <period>") to cores.

    Returns None for "max" or non-positive values; otherwise the quota in
    cores, never above ``host_cpu_cores``.
    """
    tokens = text.split()
    if len(tokens) != 2:
        raise MalformedError("cpu.max", text, "expected '<quota> <period>'")

    quota_raw, period_raw = tokens
    if quota_raw == CGROUP_NO_LIMIT:
        return None
    try:
        quota = float(quota_raw)
        period = float(period_raw)
    except ValueError as e:
        raise MalformedError("cpu.max", text, "non-numeric quota or period") from e

    return quota_to_cores(quota, period, host_cpu_cores)


def quota_to_cores(quota: float, period: float, host_cpu_cores: float) -> float | None:
    """Effective cores for a CFS quota/period pair, clamped to the host."""
    if quota <= 0 or period <= 0:
        return None
    return min(quota / period, host_cpu_cores)


class CgroupQuotaParser:
    """Reads container limits and usage through a CgroupLocator.

    CPU usage is derived from cumulative counters through a RateCache, so
    ``cpu_usage_cores`` is None on the first ``parse()`` and populated from
    the second call on.
    """

    def __init__(
        self,
        locator: CgroupLocator,
        reader: FileReader | None = None,
        rate_cache: RateCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._locator = locator
        self._reader = reader or FileReader()
        self._rates = rate_cache if rate_cache is not None else RateCache()
        self._clock = clock

    @property
    def rate_cache(self) -> RateCache:
        return self._rates

    def parse(self, host_cpu_cores: float) -> ContainerLimits:
        """Read every container field for the detected cgroup version.

        Args:
            host_cpu_cores: Host core count, upper bound for the CPU quota

        Raises:
            UnreadableError: If /proc/self/cgroup exists but cannot be read
        """
        version = self._locator.detect()
        if version == CgroupVersion.NONE:
            return ContainerLimits.unlimited()

        v2 = version == CgroupVersion.V2
        diagnostics: dict[str, str] = {}

        # /proc/self/cgroup is required to place this process in the hierarchy
        if v2:
            self._locator.unified_path()
        else:
            self._locator.controller_mappings()

        def field(name: str, reader_v2: Callable[[], object], reader_v1: Callable[[], object]):
            try:
                return reader_v2() if v2 else reader_v1()
            except (UnreadableError, MalformedError) as e:
                logger.warning(f"cgroup {version.value} {name} unavailable: {e}")
                diagnostics[name] = str(e)
                return None

        limits = ContainerLimits(
            cgroup_version=version,
            cpu_quota_cores=field(
                "cpu_quota_cores",
                lambda: self.cpu_quota_v2(host_cpu_cores),
                lambda: self.cpu_quota_v1(host_cpu_cores),
            ),
            memory_limit_bytes=field(
                "memory_limit_bytes", self.memory_limit_v2, self.memory_limit_v1
            ),
            cpu_usage_cores=field("cpu_usage_cores", self.cpu_usage_v2, self.cpu_usage_v1),
            memory_usage_bytes=field(
                "memory_usage_bytes", self.memory_usage_v2, self.memory_usage_v1
            ),
            cpu_throttled_count=field(
                "cpu_throttled_count", self.cpu_throttled_v2, self.cpu_throttled_v1
            ),
            oom_kill_count=field("oom_kill_count", self.oom_kills_v2, self.oom_kills_v1),
            diagnostics=diagnostics,
        )
        logger.debug(f"Container limits: {limits.model_dump(exclude={'diagnostics'})}")
        return limits

    # -- file access --------------------------------------------------------

    def _read(self, path: Path | None) -> str | None:
        if path is None:
            return None
        try:
            return self._reader.read(path)
        except FileMissingError:
            # Resolved a moment ago; the cgroup was removed in between
            logger.debug(f"{path} disappeared before it could be read")
            return None

    def _read_v2(self, filename: str) -> str | None:
        return self._read(self._locator.resolve_v2(filename))

    def _read_v1(self, controller: str, filename: str) -> str | None:
        return self._read(self._locator.resolve_v1(controller, filename))

    def _stat_key(self, text: str | None, field: str, key: str) -> int | None:
        if text is None:
            return None
        return stat_value(field, text, key)

    def _rate(self, path: Path, value: int, scale: int) -> float | None:
        return self._rates.observe(str(path), value, self._clock(), scale)

    # -- cgroup v2 ----------------------------------------------------------

    def cpu_quota_v2(self, host_cpu_cores: float) -> float | None:
        text = self._read_v2("cpu.max")
        if text is None:
            return None
        return cpu_max_to_cores(text, host_cpu_cores)

    def memory_limit_v2(self) -> int | None:
        text = self._read_v2("memory.max")
        if text is None or text.strip() == CGROUP_NO_LIMIT:
            return None
        limit = parse_int("memory.max", text)
        return limit if limit > 0 else None

    def cpu_usage_v2(self) -> float | None:
        path = self._locator.resolve_v2("cpu.stat")
        usage_usec = self._stat_key(self._read(path), "cpu.stat", "usage_usec")
        if path is None or usage_usec is None:
            return None
        return self._rate(path, usage_usec, USEC_PER_SECOND)

    def memory_usage_v2(self) -> int | None:
        text = self._read_v2("memory.current")
        if text is None:
            return None
        return max(0, parse_int("memory.current", text))

    def cpu_throttled_v2(self) -> int | None:
        return self._stat_key(self._read_v2("cpu.stat"), "cpu.stat", "nr_throttled")

    def oom_kills_v2(self) -> int | None:
        return self._stat_key(self._read_v2("memory.events"), "memory.events", "oom_kill")

    # -- cgroup v1 ----------------------------------------------------------

    def _read_v1_cpu(self, filename: str) -> str | None:
        # CFS files live in the cpu hierarchy; some layouts only mount cpuacct
        text = self._read_v1("cpu", filename)
        if text is None:
            text = self._read_v1("cpuacct", filename)
        return text

    def cpu_quota_v1(self, host_cpu_cores: float) -> float | None:
        quota_text = self._read_v1_cpu("cpu.cfs_quota_us")
        period_text = self._read_v1_cpu("cpu.cfs_period_us")
        if quota_text is None or period_text is None:
            return None
        quota = parse_int("cpu.cfs_quota_us", quota_text)
        period = parse_int("cpu.cfs_period_us", period_text)
        return quota_to_cores(quota, period, host_cpu_cores)

    def memory_limit_v1(self) -> int | None:
        text = self._read_v1("memory", "memory.limit_in_bytes")
        if text is None:
            return None
        limit = parse_int("memory.limit_in_bytes", text)
        if limit <= 0 or limit >= CGROUP_V1_UNLIMITED_MEMORY:
            return None
        return limit

    def cpu_usage_v1(self) -> float | None:
        path = self._locator.resolve_v1("cpuacct", "cpuacct.usage")
        text = self._read(path)
        if path is None or text is None:
            return None
        usage_ns = parse_int("cpuacct.usage", text)
        return self._rate(path, usage_ns, NSEC_PER_SECOND)

    def memory_usage_v1(self) -> int | None:
        text = self._read_v1("memory", "memory.usage_in_bytes")
        if text is None:
            return None
        return max(0, parse_int("memory.usage_in_bytes", text))

    def cpu_throttled_v1(self) -> int | None:
        return self._stat_key(self._read_v1("cpu", "cpu.stat"), "cpu.stat", "nr_throttled")

    def oom_kills_v1(self) -> int | None:
        text = self._read_v1("memory", "memory.oom_control")
        return self._stat_key(text, "memory.oom_control", "oom_kill")
