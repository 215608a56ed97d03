"""Adapter turning any async fetch function into a sample source.

Lets an application plug in its own client for a live recording rig without
subclassing::

    async def record() -> list[list[float]]:
        sample = await mea.record_sample()
        return sample.data

    rng = BioRNG(source=CallableSampleSource(record, name="live_mea"))
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from bio_rng.exceptions import SourceUnavailableError
from bio_rng.sources.base import SampleBatch, SampleSource

logger = logging.getLogger("bio_rng")

FetchFunction = Callable[[], Awaitable[Sequence[Sequence[float]]]]


class CallableSampleSource(SampleSource):
    """Wraps ``async fetch() -> channels`` as a SampleSource.

    Any exception raised by *fetch* (other than cancellation) is re-raised as
    ``SourceUnavailableError`` so the producer treats it as a recoverable
    per-iteration failure.

    Args:
        fetch: Coroutine function returning one numeric sequence per channel.
        name: Identifier reported in logs and health checks.
        on_close: Optional callback invoked once by :meth:`close`.
    """

    def __init__(
        self,
        fetch: FetchFunction,
        name: str = "callable",
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self._name = name
        self._on_close = on_close
        self._closed = False
        self._failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return not self._closed

    async def request_sample_batch(self) -> SampleBatch:
        if self._closed:
            raise SourceUnavailableError(f"Sample source {self._name!r} is closed")
        try:
            channels = await self._fetch()
        except SourceUnavailableError:
            self._failures += 1
            raise
        except Exception as exc:
            self._failures += 1
            raise SourceUnavailableError(f"Sample request to {self._name!r} failed: {exc}") from exc
        try:
            return SampleBatch.from_sequences(channels, source=self._name)
        except (TypeError, ValueError) as exc:
            self._failures += 1
            raise SourceUnavailableError(
                f"Sample source {self._name!r} returned malformed data: {exc}"
            ) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    def health_check(self) -> dict[str, Any]:
        return {
            "source": self._name,
            "healthy": self.is_available,
            "failed_requests": self._failures,
        }
