"""Abstract base class for all sample sources.

Every sample source implements this interface, whether it reads a live
multi-electrode array, simulates one, or is a test double. Subclasses must
implement the four abstract members: ``name``, ``is_available``,
``request_sample_batch()``, and ``close()``.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np


def _as_channel(channel: Sequence[float]) -> np.ndarray:
    try:
        return np.asarray(channel, dtype=np.float64)
    except (TypeError, ValueError):
        return np.asarray(channel, dtype=object)


@dataclass(frozen=True, slots=True)
class SampleBatch:
    """One reading event from a sample source.

    Attributes:
        channels: One raw numeric sequence per electrode.
        source: Name of the source that recorded the batch.
        timestamp_ns: Wall-clock time of the recording (nanoseconds since epoch).
    """

    channels: tuple[np.ndarray, ...]
    source: str
    timestamp_ns: int = field(default_factory=time.time_ns)

    @classmethod
    def from_sequences(
        cls,
        channels: Sequence[Sequence[float]],
        source: str,
    ) -> SampleBatch:
        """Build a batch from plain nested sequences.

        Numeric channels become float64 arrays. A channel that cannot be
        converted is kept as an object array, so the normalizer rejects it on
        its own while the rest of the batch is still used.

        Raises:
            TypeError: If *channels* is not iterable.
        """
        return cls(channels=tuple(_as_channel(channel) for channel in channels), source=source)

    @property
    def sample_count(self) -> int:
        """Total number of raw samples across all channels."""
        return sum(int(channel.size) for channel in self.channels)


class SampleSource(ABC):
    """Abstract base for all sample sources.

    ``request_sample_batch()`` is the only suspension point tied to the
    external signal source. It may take an unbounded amount of time; the
    producer bounds it with its own timeout.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source identifier (e.g., ``'simulated_mea'``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source can currently provide samples."""

    @abstractmethod
    async def request_sample_batch(self) -> SampleBatch:
        """Record one batch of raw samples.

        Returns:
            A SampleBatch with one sub-sequence per electrode.

        Raises:
            SourceUnavailableError: If the source cannot provide samples.
        """

    @abstractmethod
    def close(self) -> None:
        """Release resources (connections, device handles)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": self.is_available}
