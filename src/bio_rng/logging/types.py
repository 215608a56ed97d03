"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExtractionRecord:
    """Immutable record of one value moving from staging into the pool.

    Attributes:
        timestamp_ns: Wall-clock time of the extraction (nanoseconds since epoch).
        source: Name of the sample source that supplied the last batch.
        fetch_ms: Time spent awaiting the last sample batch (milliseconds).
        channels: Channels of the last batch that survived normalization.
        staged_samples: Size of the staging buffer at extraction time.
        selected_index: Index drawn uniformly from ``[0, staged_samples)``.
        value: The extracted value, in [0, 1].
        pool_size: Pool length right after the value was appended.
    """

    # Timing
    timestamp_ns: int
    fetch_ms: float

    # Source
    source: str
    channels: int

    # Selection
    staged_samples: int
    selected_index: int
    value: float

    # Pool
    pool_size: int
