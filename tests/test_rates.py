"""Tests for RateCache."""

import pytest

from limitscope.cgroups.rates import RateCache, RateSample


class TestRateCache:
    """Tests for counter-to-rate conversion."""

    def test_first_observation_has_no_rate(self) -> None:
        """Test the first sample is stored but yields None."""
        cache = RateCache()

        assert cache.observe("/cg/cpu.stat", 1_000_000, 10.0, scale=1e6) is None
        assert "/cg/cpu.stat" in cache
        assert cache.get("/cg/cpu.stat") == RateSample(value=1_000_000, timestamp=10.0)

    def test_rate_from_two_samples(self) -> None:
        """Test 1.5s of CPU over 1s of wall time is 1.5 cores."""
        cache = RateCache()
        cache.observe("k", 1_000_000, 10.0, scale=1e6)

        assert cache.observe("k", 2_500_000, 11.0, scale=1e6) == pytest.approx(1.5)

    def test_counter_reset_yields_none_and_reseeds(self) -> None:
        """Test a decreasing counter yields None and becomes the new baseline."""
        cache = RateCache()
        cache.observe("k", 5_000, 1.0, scale=1e3)

        assert cache.observe("k", 1_000, 2.0, scale=1e3) is None
        assert cache.get("k").value == 1_000
        assert cache.observe("k", 2_000, 3.0, scale=1e3) == pytest.approx(1.0)

    def test_clock_not_advancing(self) -> None:
        """Test zero elapsed time yields None."""
        cache = RateCache()
        cache.observe("k", 100, 5.0, scale=1)

        assert cache.observe("k", 200, 5.0, scale=1) is None

    def test_keys_are_independent(self) -> None:
        """Test separate keys keep separate samples."""
        cache = RateCache()
        cache.observe("a", 0, 0.0, scale=1)
        cache.observe("b", 0, 0.0, scale=1)

        assert len(cache) == 2
        assert cache.observe("a", 10, 1.0, scale=1) == pytest.approx(10.0)

        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None
