"""Host (bare metal / VM) memory and core count providers."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path

import psutil

from limitscope.core.constants import DEFAULT_PROC_ROOT
from limitscope.core.exceptions import MalformedError, ProviderUnavailableError
from limitscope.providers.base import Provider
from limitscope.providers.files import FileReader

logger = logging.getLogger(__name__)

_MEMINFO_LINE = re.compile(r"^(\w+):\s+(\d+)")
_PROCESSOR_LINE = re.compile(r"^processor\s*:", re.MULTILINE)


@dataclass
class HostMemory:
    """Host memory totals in bytes."""

    total_bytes: int
    available_bytes: int
    used_bytes: int
    swap_total_bytes: int = 0
    swap_used_bytes: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def parse_meminfo(content: str) -> HostMemory:
    """Parse /proc/meminfo content.

    Format:
        MemTotal:       16384000 kB
        MemFree:         1024000 kB
        MemAvailable:    8192000 kB
        ...

    ``used`` excludes buffers and page cache, matching what ``free`` reports.

    Raises:
        MalformedError: If MemTotal or MemFree is missing
    """
    values: dict[str, int] = {}
    for line in content.splitlines():
        match = _MEMINFO_LINE.match(line)
        if match:
            values[match.group(1)] = int(match.group(2)) * 1024

    if "MemTotal" not in values or "MemFree" not in values:
        raise MalformedError("/proc/meminfo", content, "missing MemTotal or MemFree")

    total = values["MemTotal"]
    free = values["MemFree"]
    used = total - free - values.get("Buffers", 0) - values.get("Cached", 0)
    swap_total = values.get("SwapTotal", 0)

    return HostMemory(
        total_bytes=total,
        available_bytes=values.get("MemAvailable", free),
        used_bytes=max(0, used),
        swap_total_bytes=swap_total,
        swap_used_bytes=max(0, swap_total - values.get("SwapFree", 0)),
    )


class ProcMeminfoSource(Provider[HostMemory]):
    """Reads host memory from /proc/meminfo."""

    def __init__(
        self, reader: FileReader | None = None, proc_root: Path | str = DEFAULT_PROC_ROOT
    ) -> None:
        self._reader = reader or FileReader()
        self._path = Path(proc_root) / "meminfo"

    @property
    def name(self) -> str:
        return "proc_meminfo"

    def read(self) -> HostMemory:
        return parse_meminfo(self._reader.read(self._path))


class PsutilMemorySource(Provider[HostMemory]):
    """Reads host memory through psutil."""

    @property
    def name(self) -> str:
        return "psutil"

    def read(self) -> HostMemory:
        try:
            mem = psutil.virtual_memory()
            swap = psutil.swap_memory()
        except (psutil.Error, OSError, NotImplementedError) as e:
            raise ProviderUnavailableError(f"psutil memory query failed: {e}") from e

        return HostMemory(
            total_bytes=mem.total,
            available_bytes=mem.available,
            used_bytes=mem.used,
            swap_total_bytes=swap.total,
            swap_used_bytes=swap.used,
        )


class ProcCpuinfoCoreCountSource(Provider[int]):
    """Counts ``processor`` entries in /proc/cpuinfo."""

    def __init__(
        self, reader: FileReader | None = None, proc_root: Path | str = DEFAULT_PROC_ROOT
    ) -> None:
        self._reader = reader or FileReader()
        self._path = Path(proc_root) / "cpuinfo"

    @property
    def name(self) -> str:
        return "proc_cpuinfo"

    def read(self) -> int:
        content = self._reader.read(self._path)
        count = len(_PROCESSOR_LINE.findall(content))
        if count == 0:
            raise MalformedError("/proc/cpuinfo", content, "no processor entries")
        return count


class PsutilCoreCountSource(Provider[int]):
    """Logical core count from psutil."""

    @property
    def name(self) -> str:
        return "psutil"

    def read(self) -> int:
        try:
            count = psutil.cpu_count(logical=True)
        except (psutil.Error, OSError, NotImplementedError) as e:
            raise ProviderUnavailableError(f"psutil.cpu_count failed: {e}") from e
        if not count:
            raise ProviderUnavailableError("psutil.cpu_count returned no value")
        return count


class OsCoreCountSource(Provider[int]):
    """Logical core count from ``os.cpu_count()``."""

    @property
    def name(self) -> str:
        return "os_cpu_count"

    def read(self) -> int:
        count = os.cpu_count()
        if not count:
            raise ProviderUnavailableError("os.cpu_count() returned no value")
        return count
