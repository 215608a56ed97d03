"""Tests for the BioRNG facade and integer range mapping."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any
from unittest.mock import patch

import pytest

from bio_rng.config import BioRNGConfig
from bio_rng.exceptions import (
    EntropyCancelledError,
    InvalidRangeError,
    PoolStarvationError,
    SourceUnavailableError,
)
from bio_rng.rng import BioRNG, scale_to_range
from bio_rng.sources.callable import CallableSampleSource
from bio_rng.sources.simulated import SimulatedMEASource


def _make_config(**overrides: Any) -> BioRNGConfig:
    defaults: dict[str, Any] = {
        "sample_size": 10,
        "electrodes": 4,
        "samples_per_electrode": 8,
        "poll_interval_ms": 1.0,
        "request_timeout_ms": 500.0,
        "retry_delay_ms": 1.0,
        "log_level": "none",
        "seed": 7,
    }
    defaults.update(overrides)
    return BioRNGConfig(_env_file=None, **defaults)  # type: ignore[call-arg]


def _trickle_source() -> CallableSampleSource:
    """A source that stages one sample every few ms and never fills a real threshold."""

    async def fetch() -> list[list[float]]:
        await asyncio.sleep(0.005)
        return [[0.0]]

    return CallableSampleSource(fetch, name="trickle")


def _quiet_rng() -> BioRNG:
    """BioRNG whose producer never extracts, so tests control the pool contents."""
    return BioRNG(_make_config(sample_size=1_000_000), source=_trickle_source())


class TestScaleToRange:
    """floor(u * (max - min + 1)) + min, clamped at the top."""

    def test_one_maps_to_max_not_past_it(self) -> None:
        assert scale_to_range(1.0, 0, 5) == 5

    def test_zero_maps_to_min(self) -> None:
        assert scale_to_range(0.0, 0, 5) == 0

    def test_value_just_below_one(self) -> None:
        assert scale_to_range(0.9999999999999999, 0, 5) == 5

    def test_midpoint(self) -> None:
        assert scale_to_range(0.5, 1, 10) == 6

    def test_negative_range(self) -> None:
        assert scale_to_range(0.0, -10, -5) == -10
        assert scale_to_range(1.0, -10, -5) == -5

    def test_single_value_range(self) -> None:
        for u in (0.0, 0.3, 1.0):
            assert scale_to_range(u, 7, 7) == 7

    def test_huge_range_stays_in_bounds(self) -> None:
        lo, hi = -(2**62), 2**62
        assert lo <= scale_to_range(1.0, lo, hi) <= hi

    def test_range_wider_than_float_max(self) -> None:
        hi = 10**400
        assert scale_to_range(0.0, 0, hi) == 0
        assert scale_to_range(0.5, 0, hi) == 5 * 10**399
        assert scale_to_range(1.0, 0, hi) == hi

    def test_wide_range_is_exact(self) -> None:
        # The span 2**60 - 1 rounds up to 2**60 as a float, giving 2**60 - 128.
        u = 1.0 - 2.0**-53
        assert scale_to_range(u, 0, 2**60 - 2) == 2**60 - 129

    def test_buckets_are_even(self) -> None:
        counts = [0] * 6
        steps = 6000
        for i in range(steps):
            counts[scale_to_range((i + 0.5) / steps, 0, 5)] += 1
        assert counts == [1000] * 6

    def test_min_greater_than_max_raises(self) -> None:
        with pytest.raises(InvalidRangeError):
            scale_to_range(0.5, 5, 0)

    @pytest.mark.parametrize("bounds", [(0.5, 3), (0, 3.0), (True, 3), (0, "3")])
    def test_non_integer_bounds_raise(self, bounds: tuple[Any, Any]) -> None:
        with pytest.raises(InvalidRangeError):
            scale_to_range(0.5, *bounds)


class TestBioRNGConsumers:
    """rand / rand_int / arand / arand_int against a running producer."""

    def test_default_source_from_registry(self) -> None:
        with BioRNG(_make_config()) as rng:
            assert isinstance(rng.source, SimulatedMEASource)
            assert rng.source.mea_id == 4

    def test_rand_returns_unit_floats(self) -> None:
        with BioRNG(_make_config()) as rng:
            values = [rng.rand(timeout=5.0) for _ in range(100)]
        assert all(0.0 <= v <= 1.0 for v in values)
        assert len(set(values)) > 1

    def test_rand_int_within_bounds(self) -> None:
        with BioRNG(_make_config()) as rng:
            values = [rng.rand_int(1, 6, timeout=5.0) for _ in range(200)]
        assert set(values) <= {1, 2, 3, 4, 5, 6}
        assert len(set(values)) > 1

    def test_arand_from_foreign_event_loop(self) -> None:
        with BioRNG(_make_config()) as rng:

            async def draw() -> list[float]:
                return [await rng.arand(timeout=5.0) for _ in range(20)]

            values = asyncio.run(draw())
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_arand_int_within_bounds(self) -> None:
        with BioRNG(_make_config()) as rng:

            async def draw() -> list[int]:
                return [await rng.arand_int(-3, 3, timeout=5.0) for _ in range(50)]

            values = asyncio.run(draw())
        assert all(-3 <= v <= 3 for v in values)

    def test_rand_int_upper_boundary(self) -> None:
        with _quiet_rng() as rng, patch.object(rng, "rand", return_value=1.0):
            assert rng.rand_int(0, 5) == 5

    def test_arand_int_upper_boundary(self) -> None:
        with _quiet_rng() as rng:
            rng.pool.put(1.0)
            assert asyncio.run(rng.arand_int(0, 5, timeout=1.0)) == 5

    def test_invalid_range_consumes_nothing(self) -> None:
        with _quiet_rng() as rng:
            rng.pool.put(0.5)
            with pytest.raises(InvalidRangeError):
                rng.rand_int(5, 0)
            with pytest.raises(InvalidRangeError):
                asyncio.run(rng.arand_int(5, 0))
            assert len(rng.pool) == 1

    def test_fifo_through_facade(self) -> None:
        with _quiet_rng() as rng:
            rng.pool.put(0.1)
            rng.pool.put(0.2)
            assert rng.rand(timeout=1.0) == 0.1
            assert rng.rand(timeout=1.0) == 0.2

    def test_rand_timeout_reports_starvation(self) -> None:
        with _quiet_rng() as rng, pytest.raises(PoolStarvationError):
            rng.rand(timeout=0.05)

    def test_no_double_delivery_across_threads(self) -> None:
        n = 24
        with _quiet_rng() as rng:
            for i in range(n):
                rng.pool.put(i / n)
            results: list[float] = []
            lock = threading.Lock()

            def consume() -> None:
                value = rng.rand(timeout=2.0)
                with lock:
                    results.append(value)

            threads = [threading.Thread(target=consume) for _ in range(n)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=5.0)

        assert sorted(results) == [i / n for i in range(n)]


class TestBioRNGLifecycle:
    """Startup, shutdown and producer failure."""

    def test_producer_starts_on_construction(self) -> None:
        with BioRNG(_make_config()) as rng:
            deadline = time.monotonic() + 5.0
            while rng.producer.requests == 0 and time.monotonic() < deadline:
                time.sleep(0.005)
            assert rng.producer.requests > 0

    def test_close_releases_pending_rand(self) -> None:
        rng = _quiet_rng()
        errors: list[BaseException] = []

        def consume() -> None:
            try:
                rng.rand()
            except EntropyCancelledError as exc:
                errors.append(exc)

        thread = threading.Thread(target=consume)
        thread.start()
        time.sleep(0.02)
        rng.close()
        thread.join(timeout=2.0)

        assert not thread.is_alive()
        assert len(errors) == 1

    def test_close_stops_requests(self) -> None:
        rng = _quiet_rng()
        time.sleep(0.02)
        rng.close()
        requests = rng.producer.requests
        time.sleep(0.03)
        assert rng.producer.requests == requests
        assert rng.producer.stopped is True

    def test_close_is_idempotent_and_closes_source(self) -> None:
        rng = BioRNG(_make_config())
        rng.close()
        rng.close()
        assert rng.closed is True
        assert rng.source.is_available is False

    def test_rand_after_close_raises(self) -> None:
        rng = _quiet_rng()
        rng.close()
        with pytest.raises(EntropyCancelledError):
            rng.rand(timeout=1.0)

    def test_fatal_producer_error_reaches_consumers(self) -> None:
        async def fetch() -> list[list[float]]:
            raise ConnectionError("rig unplugged")

        config = _make_config(max_consecutive_failures=2)
        with BioRNG(config, source=CallableSampleSource(fetch, name="broken")) as rng:
            with pytest.raises(EntropyCancelledError) as excinfo:
                rng.rand(timeout=5.0)
            assert isinstance(excinfo.value.__cause__, SourceUnavailableError)
            deadline = time.monotonic() + 5.0
            while rng.health_check()["producer_running"] and time.monotonic() < deadline:
                time.sleep(0.005)
            assert rng.health_check()["producer_running"] is False

    def test_health_check(self) -> None:
        with BioRNG(_make_config()) as rng:
            rng.rand(timeout=5.0)
            health = rng.health_check()
        assert health["source"]["source"] == "simulated_mea"
        assert health["extractions"] >= 1
        assert health["closed"] is False
        assert set(health) >= {
            "producer_running",
            "requests",
            "failures",
            "staged_samples",
            "pool_size",
        }
