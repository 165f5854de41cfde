"""CPU snapshots and delta analysis.

CPU counters are cumulative since boot. A usage percentage needs two
snapshots taken some time apart: the delta between them tells how many ticks
were spent busy versus idle during the interval.

Typical flow:
    snapshot 1 -> sleep(interval) -> snapshot 2 -> calculate_cpu_delta()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime

from limitscope.core.exceptions import IncompatibleSnapshotsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CpuTimes:
    """Cumulative CPU time counters in platform ticks."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    def total(self) -> int:
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    def busy(self) -> int:
        """Ticks spent doing work (everything except idle and iowait)."""
        return self.total() - self.idle - self.iowait

    def busy_percentage(self) -> float:
        total = self.total()
        if total == 0:
            return 0.0
        return self.busy() / total * 100.0

    def delta(self, later: CpuTimes) -> CpuTimes:
        """Field-wise ``later - self``.

        A field that went backwards (counter wrap or source reset) is clipped
        to zero on its own; the other fields keep their real deltas.
        """
        return CpuTimes(
            user=max(0, later.user - self.user),
            nice=max(0, later.nice - self.nice),
            system=max(0, later.system - self.system),
            idle=max(0, later.idle - self.idle),
            iowait=max(0, later.iowait - self.iowait),
            irq=max(0, later.irq - self.irq),
            softirq=max(0, later.softirq - self.softirq),
            steal=max(0, later.steal - self.steal),
        )

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class CpuCoreTimes:
    """Counters for one logical CPU."""

    core_index: int
    times: CpuTimes


@dataclass(frozen=True)
class CpuSnapshot:
    """Point-in-time CPU counters for the whole host and each core."""

    total: CpuTimes
    per_core: tuple[CpuCoreTimes, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    # Monotonic timestamp (seconds) for interval calculation. Tests that build
    # snapshots by hand may leave it at 0.0; the delta then uses `timestamp`.
    monotonic_time: float = 0.0

    @property
    def core_count(self) -> int:
        return len(self.per_core)

    def find_core(self, core_index: int) -> CpuCoreTimes | None:
        for core in self.per_core:
            if core.core_index == core_index:
                return core
        return None

    def find_busy_cores(self, threshold: float) -> list[CpuCoreTimes]:
        """Cores whose cumulative busy percentage is at or above threshold."""
        return [
            c
            for c in self.per_core
            if c.times.total() > 0 and c.times.busy_percentage() >= threshold
        ]

    def find_idle_cores(self, threshold: float) -> list[CpuCoreTimes]:
        """Cores whose cumulative idle percentage is at or above threshold."""
        return [
            c
            for c in self.per_core
            if c.times.total() > 0 and c.times.idle / c.times.total() * 100.0 >= threshold
        ]


@dataclass(frozen=True)
class CpuCoreDelta:
    """Counter delta for one core over an interval."""

    core_index: int
    delta: CpuTimes

    def usage_percentage(self) -> float:
        return _percentage(self.delta.busy(), self.delta.total())


@dataclass(frozen=True)
class CpuDelta:
    """Difference between two CPU snapshots of the same host."""

    total_delta: CpuTimes
    per_core_delta: tuple[CpuCoreDelta, ...]
    duration_seconds: float
    start_time: datetime
    end_time: datetime

    @property
    def core_count(self) -> int:
        return len(self.per_core_delta)

    def usage_percentage(self) -> float:
        """Busy share of all ticks in the interval (0-100).

        Returns 0.0 when no ticks elapsed.
        """
        return _percentage(self.total_delta.busy(), self.total_delta.total())

    def normalized_usage_percentage(self) -> float:
        """``usage_percentage()`` divided by the number of cores."""
        if not self.per_core_delta:
            return 0.0
        return self.usage_percentage() / len(self.per_core_delta)

    def user_percentage(self) -> float:
        return _percentage(self.total_delta.user, self.total_delta.total())

    def system_percentage(self) -> float:
        return _percentage(self.total_delta.system, self.total_delta.total())

    def idle_percentage(self) -> float:
        return _percentage(self.total_delta.idle, self.total_delta.total())

    def iowait_percentage(self) -> float:
        return _percentage(self.total_delta.iowait, self.total_delta.total())

    def busy_cores(self) -> float:
        """Average number of cores kept busy during the interval."""
        return self.usage_percentage() / 100.0 * len(self.per_core_delta)

    def core_usage_percentage(self, core_index: int) -> float | None:
        for core in self.per_core_delta:
            if core.core_index == core_index:
                return core.usage_percentage()
        return None

    def busiest_core(self) -> CpuCoreDelta | None:
        """Core with the highest usage; ties go to the lowest index."""
        best: CpuCoreDelta | None = None
        best_usage = 0.0
        for core in self.per_core_delta:
            usage = core.usage_percentage()
            if (
                best is None
                or usage > best_usage
                or (usage == best_usage and core.core_index < best.core_index)
            ):
                best, best_usage = core, usage
        return best

    def idlest_core(self) -> CpuCoreDelta | None:
        """Core with the lowest usage; ties go to the lowest index."""
        best: CpuCoreDelta | None = None
        best_usage = 0.0
        for core in self.per_core_delta:
            usage = core.usage_percentage()
            if (
                best is None
                or usage < best_usage
                or (usage == best_usage and core.core_index < best.core_index)
            ):
                best, best_usage = core, usage
        return best


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100.0


def _elapsed_seconds(before: CpuSnapshot, after: CpuSnapshot) -> float:
    if before.monotonic_time > 0 and after.monotonic_time > 0:
        return max(0.0, after.monotonic_time - before.monotonic_time)
    return max(0.0, (after.timestamp - before.timestamp).total_seconds())


def calculate_cpu_delta(before: CpuSnapshot, after: CpuSnapshot) -> CpuDelta:
    """Compute the counter delta between two snapshots.

    Args:
        before: Earlier snapshot
        after: Later snapshot of the same host

    Returns:
        CpuDelta with per-field deltas, each clipped at zero

    Raises:
        IncompatibleSnapshotsError: If the snapshots cover different cores
    """
    if before.core_count != after.core_count:
        raise IncompatibleSnapshotsError(
            f"Incompatible snapshots: {before.core_count} cores vs {after.core_count} cores"
        )

    per_core: list[CpuCoreDelta] = []
    for before_core in before.per_core:
        after_core = after.find_core(before_core.core_index)
        if after_core is None:
            raise IncompatibleSnapshotsError(
                f"Incompatible snapshots: core {before_core.core_index} missing from later snapshot"
            )
        per_core.append(
            CpuCoreDelta(
                core_index=before_core.core_index,
                delta=before_core.times.delta(after_core.times),
            )
        )
    per_core.sort(key=lambda c: c.core_index)

    return CpuDelta(
        total_delta=before.total.delta(after.total),
        per_core_delta=tuple(per_core),
        duration_seconds=_elapsed_seconds(before, after),
        start_time=before.timestamp,
        end_time=after.timestamp,
    )


def measure_cpu_delta(
    take_snapshot: Callable[[], CpuSnapshot],
    interval_seconds: float,
    min_interval_seconds: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> CpuDelta:
    """Take two snapshots ``interval_seconds`` apart and return their delta.

    The wait is a plain blocking sleep. Intervals shorter than
    ``min_interval_seconds`` are raised to that minimum.
    """
    if interval_seconds < min_interval_seconds:
        logger.debug(
            f"CPU interval {interval_seconds:.3f}s below minimum, using {min_interval_seconds:.3f}s"
        )
        interval_seconds = min_interval_seconds

    first = take_snapshot()
    sleep(interval_seconds)
    second = take_snapshot()
    return calculate_cpu_delta(first, second)
