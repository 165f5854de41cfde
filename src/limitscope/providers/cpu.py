"""CPU snapshot providers.

Sources, in default preference order:
- ProcStatCpuSource: Linux /proc/stat (exact kernel ticks)
- PsutilCpuSource: psutil per-CPU times (any platform psutil supports)
- MinimalCpuSource: zero-filled counters; always succeeds, last resort
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path

import psutil

from limitscope.accounting.cpu import CpuCoreTimes, CpuSnapshot, CpuTimes
from limitscope.core.constants import CPU_TICKS_PER_SECOND, DEFAULT_PROC_ROOT
from limitscope.core.exceptions import MalformedError, ProviderUnavailableError
from limitscope.providers.base import Provider
from limitscope.providers.files import FileReader

logger = logging.getLogger(__name__)

_CORE_LINE = re.compile(r"^cpu(\d+)\s")

# user nice system idle iowait irq softirq steal
_PROC_STAT_FIELDS = 8


def _parse_cpu_line(line: str) -> CpuTimes:
    parts = line.split()
    if len(parts) < _PROC_STAT_FIELDS + 1:
        raise MalformedError("/proc/stat cpu line", line, "expected 8 counters")
    try:
        values = [int(v) for v in parts[1 : _PROC_STAT_FIELDS + 1]]
    except ValueError as e:
        raise MalformedError("/proc/stat cpu line", line, "non-integer counter") from e
    return CpuTimes(*values)


def parse_proc_stat(content: str) -> CpuSnapshot:
    """Parse /proc/stat content into a CpuSnapshot.

    Format:
        cpu  4705 356 584 3699176 23060 0 277 0 0 0
        cpu0 1393 280 234 1846210 11468 0 163 0 0 0
        ...

    Raises:
        MalformedError: If the aggregate ``cpu`` line is missing or invalid
    """
    total: CpuTimes | None = None
    per_core: list[CpuCoreTimes] = []

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith("cpu "):
            total = _parse_cpu_line(line)
            continue
        match = _CORE_LINE.match(line)
        if match:
            per_core.append(
                CpuCoreTimes(core_index=int(match.group(1)), times=_parse_cpu_line(line))
            )

    if total is None:
        raise MalformedError("/proc/stat", content, "no aggregate cpu line")

    return CpuSnapshot(
        total=total,
        per_core=tuple(sorted(per_core, key=lambda c: c.core_index)),
        monotonic_time=time.monotonic(),
    )


class ProcStatCpuSource(Provider[CpuSnapshot]):
    """Reads CPU counters from /proc/stat."""

    def __init__(
        self, reader: FileReader | None = None, proc_root: Path | str = DEFAULT_PROC_ROOT
    ) -> None:
        self._reader = reader or FileReader()
        self._path = Path(proc_root) / "stat"

    @property
    def name(self) -> str:
        return "proc_stat"

    def read(self) -> CpuSnapshot:
        return parse_proc_stat(self._reader.read(self._path))


def _ticks(seconds: float) -> int:
    return int(round(seconds * CPU_TICKS_PER_SECOND))


def _times_from_psutil(raw: object) -> CpuTimes:
    # Field availability differs by platform (no iowait/steal on macOS)
    return CpuTimes(
        user=_ticks(getattr(raw, "user", 0.0)),
        nice=_ticks(getattr(raw, "nice", 0.0)),
        system=_ticks(getattr(raw, "system", 0.0)),
        idle=_ticks(getattr(raw, "idle", 0.0)),
        iowait=_ticks(getattr(raw, "iowait", 0.0)),
        irq=_ticks(getattr(raw, "irq", 0.0)),
        softirq=_ticks(getattr(raw, "softirq", 0.0)),
        steal=_ticks(getattr(raw, "steal", 0.0)),
    )


class PsutilCpuSource(Provider[CpuSnapshot]):
    """Reads CPU counters through psutil, converted to centisecond ticks."""

    @property
    def name(self) -> str:
        return "psutil"

    def read(self) -> CpuSnapshot:
        try:
            total = psutil.cpu_times(percpu=False)
            per_cpu = psutil.cpu_times(percpu=True)
        except (psutil.Error, OSError, NotImplementedError) as e:
            raise ProviderUnavailableError(f"psutil.cpu_times failed: {e}") from e

        return CpuSnapshot(
            total=_times_from_psutil(total),
            per_core=tuple(
                CpuCoreTimes(core_index=i, times=_times_from_psutil(raw))
                for i, raw in enumerate(per_cpu)
            ),
            monotonic_time=time.monotonic(),
        )


class MinimalCpuSource(Provider[CpuSnapshot]):
    """Zero-filled snapshot sized to the visible core count.

    Keeps callers working when no real source is available; every delta
    computed from it reports 0% usage.
    """

    @property
    def name(self) -> str:
        return "minimal"

    def read(self) -> CpuSnapshot:
        core_count = max(1, os.cpu_count() or 1)
        zero = CpuTimes()
        logger.debug(f"Using zero-filled CPU snapshot for {core_count} cores")
        return CpuSnapshot(
            total=zero,
            per_core=tuple(CpuCoreTimes(core_index=i, times=zero) for i in range(core_count)),
            monotonic_time=time.monotonic(),
        )
