"""Providers module - interchangeable metric sources.

Provides multiple provider implementations:
- FileReader: procfs/sysfs text files
- ProcStatCpuSource, PsutilCpuSource, MinimalCpuSource: CPU snapshots
- ProcMeminfoSource, PsutilMemorySource: host memory
- ProcCpuinfoCoreCountSource, PsutilCoreCountSource, OsCoreCountSource: core count

FallbackResolver chains providers of the same metric in preference order.
"""

from __future__ import annotations

from limitscope.providers.base import Provider
from limitscope.providers.composite import FallbackResolver
from limitscope.providers.cpu import (
    MinimalCpuSource,
    ProcStatCpuSource,
    PsutilCpuSource,
    parse_proc_stat,
)
from limitscope.providers.files import FileReader
from limitscope.providers.host import (
    HostMemory,
    OsCoreCountSource,
    ProcCpuinfoCoreCountSource,
    ProcMeminfoSource,
    PsutilCoreCountSource,
    PsutilMemorySource,
    parse_meminfo,
)

__all__ = [
    "FallbackResolver",
    "FileReader",
    "HostMemory",
    "MinimalCpuSource",
    "OsCoreCountSource",
    "parse_meminfo",
    "parse_proc_stat",
    "ProcCpuinfoCoreCountSource",
    "ProcMeminfoSource",
    "ProcStatCpuSource",
    "Provider",
    "PsutilCoreCountSource",
    "PsutilCpuSource",
    "PsutilMemorySource",
]
