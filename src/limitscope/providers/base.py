"""Base provider abstract class for metric sources.

All providers implement this interface so that several alternative sources
for the same metric can be swapped or chained (procfs, psutil, zero-value
fallbacks, etc.).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Provider(ABC, Generic[T]):
    """Abstract source of one metric value.

    A provider signals failure by raising ``AccountingError`` (or a subclass)
    from ``read``; any value it returns is taken as-is.
    """

    @abstractmethod
    def read(self) -> T:
        """Read the current value of the metric.

        Returns:
            The metric value

        Raises:
            AccountingError: If the value cannot be obtained from this source
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this provider."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
