"""Simulated multi-electrode array for development and tests.

Emulates the extracellular recordings of a neural organoid on one of
several MEAs: every electrode yields a microvolt-scale trace made of a slow
baseline drift, Gaussian background noise and sparse negative spikes.
Seeded runs are reproducible.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import numpy as np

from bio_rng.config import MEA_COUNT
from bio_rng.exceptions import ConfigValidationError, SourceUnavailableError
from bio_rng.sources.base import SampleBatch, SampleSource
from bio_rng.sources.registry import register_sample_source

if TYPE_CHECKING:
    from bio_rng.config import BioRNGConfig


@register_sample_source("simulated_mea")
class SimulatedMEASource(SampleSource):
    """Synthetic MEA recording, one sub-sequence per electrode.

    Configuration fields used from ``BioRNGConfig``:

    * ``mea_id``: which of the ``MEA_COUNT`` arrays to emulate.
    * ``electrodes``: sub-sequences per batch.
    * ``samples_per_electrode``: length of each sub-sequence.
    * ``source_latency_ms``: simulated acquisition time per batch.
    * ``seed``: RNG seed for reproducible traces.

    Raises:
        ConfigValidationError: If ``mea_id`` is outside ``1..MEA_COUNT``.
    """

    _NOISE_STD_UV: float = 6.0
    _DRIFT_STD_UV: float = 0.05
    _SPIKE_RATE: float = 0.002
    _SPIKE_AMPLITUDE_UV: tuple[float, float] = (40.0, 120.0)

    def __init__(self, config: BioRNGConfig) -> None:
        if not 1 <= config.mea_id <= MEA_COUNT:
            raise ConfigValidationError(
                f"mea_id must be between 1 and {MEA_COUNT}, got {config.mea_id}"
            )
        self._mea_id = config.mea_id
        self._electrodes = config.electrodes
        self._samples = config.samples_per_electrode
        self._latency_s = config.source_latency_ms / 1000.0
        self._rng = np.random.default_rng(config.seed)
        # Each electrode sits at its own DC offset; the drift carries over between batches.
        self._baseline = self._rng.uniform(-20.0, 20.0, size=self._electrodes)
        self._closed = False
        self._batches = 0

    @property
    def name(self) -> str:
        """Return ``'simulated_mea'``."""
        return "simulated_mea"

    @property
    def mea_id(self) -> int:
        return self._mea_id

    @property
    def is_available(self) -> bool:
        """``True`` until :meth:`close` is called."""
        return not self._closed

    async def request_sample_batch(self) -> SampleBatch:
        """Record one synthetic batch of ``electrodes x samples_per_electrode`` values.

        Raises:
            SourceUnavailableError: If the source has been closed.
        """
        if self._closed:
            raise SourceUnavailableError("SimulatedMEASource is closed")
        if self._latency_s > 0:
            await asyncio.sleep(self._latency_s)

        shape = (self._electrodes, self._samples)
        drift = np.cumsum(self._rng.normal(0.0, self._DRIFT_STD_UV, size=shape), axis=1)
        traces = self._baseline[:, None] + drift + self._rng.normal(0.0, self._NOISE_STD_UV, size=shape)

        spikes = self._rng.random(shape) < self._SPIKE_RATE
        low, high = self._SPIKE_AMPLITUDE_UV
        traces[spikes] -= self._rng.uniform(low, high, size=int(spikes.sum()))

        self._baseline = self._baseline + drift[:, -1]
        self._batches += 1
        return SampleBatch(channels=tuple(traces), source=self.name)

    def close(self) -> None:
        """Mark the source as closed (idempotent)."""
        self._closed = True

    def health_check(self) -> dict[str, Any]:
        """Return status including the emulated MEA and batch counter."""
        return {
            "source": self.name,
            "healthy": self.is_available,
            "mea_id": self._mea_id,
            "electrodes": self._electrodes,
            "samples_per_electrode": self._samples,
            "batches_recorded": self._batches,
        }
