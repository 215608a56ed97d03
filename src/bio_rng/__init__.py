"""bio-rng: random numbers pooled from biological electrode noise.

Continuously records multi-electrode-array samples, min-max normalizes
them, and extracts one value per ``sample_size`` staged samples into a
FIFO entropy pool that callers draw uniform floats and bounded integers
from.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("bio-rng")
except PackageNotFoundError:
    __version__ = "0.0.0"

from bio_rng.config import BioRNGConfig
from bio_rng.exceptions import (
    BioRNGError,
    ConfigValidationError,
    DegenerateBatchError,
    EntropyCancelledError,
    InvalidRangeError,
    PoolStarvationError,
    SourceUnavailableError,
)
from bio_rng.normalize import normalize
from bio_rng.pool import EntropyPool
from bio_rng.producer import EntropyProducer
from bio_rng.rng import BioRNG, scale_to_range

__all__ = [
    "BioRNG",
    "BioRNGConfig",
    "BioRNGError",
    "ConfigValidationError",
    "DegenerateBatchError",
    "EntropyCancelledError",
    "EntropyPool",
    "EntropyProducer",
    "InvalidRangeError",
    "PoolStarvationError",
    "SourceUnavailableError",
    "__version__",
    "normalize",
    "scale_to_range",
]
