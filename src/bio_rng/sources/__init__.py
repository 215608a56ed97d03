"""Sample source subsystem for bio-rng.

Re-exports the ABC, registry, and built-in source implementations::

    from bio_rng.sources import SampleSource, SampleSourceRegistry
    from bio_rng.sources import SimulatedMEASource, CallableSampleSource
"""

from bio_rng.sources.base import SampleBatch, SampleSource
from bio_rng.sources.callable import CallableSampleSource
from bio_rng.sources.registry import SampleSourceRegistry, register_sample_source
from bio_rng.sources.simulated import SimulatedMEASource

__all__ = [
    "CallableSampleSource",
    "SampleBatch",
    "SampleSource",
    "SampleSourceRegistry",
    "SimulatedMEASource",
    "register_sample_source",
]
