"""Counter-to-rate conversion.

The kernel exposes CPU usage as a cumulative counter (microseconds on cgroup
v2, nanoseconds on v1). A rate needs two observations of the same counter;
RateCache keeps the latest one per resource path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateSample:
    """Most recent observation of a cumulative counter."""

    value: int
    timestamp: float


class RateCache:
    """Latest (value, timestamp) per counter key.

    Entries are overwritten on every observation, whether or not a rate could
    be derived, and are only removed by ``clear()``.
    """

    def __init__(self) -> None:
        self._samples: dict[str, RateSample] = {}

    def __len__(self) -> int:
        return len(self._samples)

    def __contains__(self, key: object) -> bool:
        return key in self._samples

    def get(self, key: str) -> RateSample | None:
        return self._samples.get(key)

    def clear(self) -> None:
        self._samples.clear()

    def observe(self, key: str, value: int, timestamp: float, scale: float) -> float | None:
        """Record a counter reading and return its rate since the last one.

        Args:
            key: Counter identity (absolute file path)
            value: Cumulative counter value
            timestamp: Observation time in seconds
            scale: Counter units per second (1e6 for usec, 1e9 for nsec)

        Returns:
            Rate in counter-seconds per second (cores, for CPU usage), or None
            on the first observation, after a counter reset, or when the
            clock did not advance
        """
        previous = self._samples.get(key)
        self._samples[key] = RateSample(value=value, timestamp=timestamp)

        if previous is None:
            logger.debug(f"First sample for {key}, rate needs a second read")
            return None

        delta_value = value - previous.value
        delta_time = timestamp - previous.timestamp
        if delta_value < 0 or delta_time <= 0:
            logger.debug(
                f"Discarding rate for {key}: delta_value={delta_value} delta_time={delta_time:.6f}"
            )
            return None

        return (delta_value / scale) / delta_time
