"""limitscope - container-aware resource accounting."""

from __future__ import annotations

from limitscope.accounting import (
    CpuDelta,
    CpuSnapshot,
    ResourceAccountant,
    calculate_cpu_delta,
)
from limitscope.core.config import load_config
from limitscope.core.exceptions import AccountingError
from limitscope.core.schemas import (
    AccountingConfig,
    CgroupVersion,
    ContainerLimits,
    LimitSource,
    SystemLimits,
)

__version__ = "0.1.0"

__all__ = [
    "AccountingConfig",
    "AccountingError",
    "calculate_cpu_delta",
    "CgroupVersion",
    "ContainerLimits",
    "CpuDelta",
    "CpuSnapshot",
    "LimitSource",
    "load_config",
    "ResourceAccountant",
    "SystemLimits",
    "__version__",
]
