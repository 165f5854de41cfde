"""Exception hierarchy for resource accounting.

Absent values are never errors: a limit that is not configured surfaces as
``None``. The exceptions below cover the cases where something could not be
determined at all.
"""

from __future__ import annotations

from pathlib import Path

# Raw snippets attached to MalformedError are truncated to this many characters
_MAX_SNIPPET = 80


class AccountingError(Exception):
    """Base class for all limitscope errors."""


class FileMissingError(AccountingError):
    """A counter file does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        super().__init__(f"File not found: {self.path}")


class UnreadableError(AccountingError):
    """A counter file exists but cannot be read (usually permissions)."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = str(path)
        self.reason = reason
        message = f"Insufficient permissions to read: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MalformedError(AccountingError):
    """Content was present but did not match the expected grammar."""

    def __init__(self, field: str, raw: str, detail: str = "") -> None:
        self.field = field
        self.raw = raw[:_MAX_SNIPPET]
        message = f"Malformed {field}: {self.raw!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnsupportedPlatformError(AccountingError):
    """Linux-only accounting was requested on another platform."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(
            f"Unsupported operating system for cgroup accounting: {platform}"
        )


class IncompatibleSnapshotsError(AccountingError):
    """Two CPU snapshots do not describe the same set of cores."""


class ProviderResolutionError(AccountingError):
    """No provider produced a value for a metric."""


class NoProvidersConfiguredError(ProviderResolutionError):
    """A fallback resolver was built with an empty provider list."""

    def __init__(self, metric: str) -> None:
        self.metric = metric
        super().__init__(f"No providers configured for {metric}")


class AllProvidersFailedError(ProviderResolutionError):
    """Every provider in a fallback chain failed.

    ``failures`` holds ``(provider name, message)`` pairs in trial order.
    """

    def __init__(self, metric: str, failures: list[tuple[str, str]]) -> None:
        self.metric = metric
        self.failures = list(failures)
        details = "; ".join(f"{name}: {message}" for name, message in self.failures)
        super().__init__(f"All {metric} providers failed: {details}")


class ProviderUnavailableError(AccountingError):
    """A provider cannot run in this environment (missing API, wrong OS)."""
