"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from limitscope.core.config import load_config
from limitscope.core.exceptions import (
    AccountingError,
    AllProvidersFailedError,
    FileMissingError,
    IncompatibleSnapshotsError,
    MalformedError,
    NoProvidersConfiguredError,
    ProviderResolutionError,
    ProviderUnavailableError,
    UnreadableError,
    UnsupportedPlatformError,
)
from limitscope.core.schemas import (
    AccountingConfig,
    CgroupVersion,
    ContainerLimits,
    LimitSource,
    PressureReport,
    SystemLimits,
)

__all__ = [
    "AccountingConfig",
    "AccountingError",
    "AllProvidersFailedError",
    "CgroupVersion",
    "ContainerLimits",
    "FileMissingError",
    "IncompatibleSnapshotsError",
    "LimitSource",
    "load_config",
    "MalformedError",
    "NoProvidersConfiguredError",
    "PressureReport",
    "ProviderResolutionError",
    "ProviderUnavailableError",
    "SystemLimits",
    "UnreadableError",
    "UnsupportedPlatformError",
]
