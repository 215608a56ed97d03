"""Shared pytest fixtures for bio-rng tests.

Provides configuration objects isolated from the environment and a seeded
simulated MEA source used across multiple test modules.
"""

from __future__ import annotations

import pytest

from bio_rng.config import BioRNGConfig
from bio_rng.sources.simulated import SimulatedMEASource


@pytest.fixture
def default_config() -> BioRNGConfig:
    """Return a BioRNGConfig with all default values, ignoring any .env file."""
    return BioRNGConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def fast_config() -> BioRNGConfig:
    """Return a config tuned for quick tests.

    Small staging threshold, 1ms polling, no retry pause, short request
    timeout, no log output and a fixed seed.
    """
    return BioRNGConfig(
        _env_file=None,
        sample_size=10,
        electrodes=4,
        samples_per_electrode=8,
        poll_interval_ms=1.0,
        request_timeout_ms=200.0,
        retry_delay_ms=0.0,
        log_level="none",
        seed=42,
    )  # type: ignore[call-arg]


@pytest.fixture
def simulated_source(fast_config: BioRNGConfig) -> SimulatedMEASource:
    """Return a seeded SimulatedMEASource built from ``fast_config``."""
    return SimulatedMEASource(fast_config)
