"""Ordered fallback resolution across interchangeable providers.

The list order encodes preference: fast and accurate sources first, degraded
or zero-value sources last. Providers are tried one at a time and the first
success wins, so a cheap source never pays for an expensive one behind it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Generic, TypeVar

from limitscope.core.exceptions import (
    AccountingError,
    AllProvidersFailedError,
    NoProvidersConfiguredError,
)
from limitscope.providers.base import Provider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FallbackResolver(Provider[T], Generic[T]):
    """Try providers in order and return the first successful value.

    Example:
        ```python
        memory = FallbackResolver(
            [ProcMeminfoSource(reader), PsutilMemorySource()], metric="memory"
        )
        host = memory.resolve()
        ```
    """

    def __init__(self, providers: Sequence[Provider[T]], metric: str) -> None:
        """Initialize the resolver.

        Args:
            providers: Providers to try, most preferred first
            metric: Metric family name used in error messages
        """
        self._providers = list(providers)
        self._metric = metric

    @property
    def name(self) -> str:
        return f"fallback:{self._metric}"

    @property
    def providers(self) -> list[Provider[T]]:
        return list(self._providers)

    def resolve(self) -> T:
        """Return the first provider's value that does not raise.

        Raises:
            NoProvidersConfiguredError: If the provider list is empty
            AllProvidersFailedError: If every provider raised; the message
                lists each provider's name and error in trial order
        """
        if not self._providers:
            raise NoProvidersConfiguredError(self._metric)

        failures: list[tuple[str, str]] = []
        for provider in self._providers:
            try:
                value = provider.read()
            except AccountingError as e:
                logger.debug(f"{self._metric} provider {provider.name} failed: {e}")
                failures.append((provider.name, str(e)))
                continue

            if failures:
                logger.debug(
                    f"{self._metric} resolved by {provider.name} after {len(failures)} failure(s)"
                )
            return value

        raise AllProvidersFailedError(self._metric, failures)

    def read(self) -> T:
        return self.resolve()
