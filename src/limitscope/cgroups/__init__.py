"""cgroups module - version detection, path resolution and limit parsing."""

from __future__ import annotations

from limitscope.cgroups.locator import CgroupLocator, ControllerMapping
from limitscope.cgroups.parser import CgroupQuotaParser, cpu_max_to_cores, quota_to_cores
from limitscope.cgroups.rates import RateCache, RateSample

__all__ = [
    "CgroupLocator",
    "CgroupQuotaParser",
    "ControllerMapping",
    "cpu_max_to_cores",
    "quota_to_cores",
    "RateCache",
    "RateSample",
]
