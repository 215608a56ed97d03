"""The entropy producer loop, sole writer of the entropy pool.

Each iteration requests one sample batch, normalizes every channel into
[0, 1], and appends the result to a private staging buffer. Once the buffer
holds at least ``sample_size`` values, one of them is picked uniformly at
random, appended to the pool, and the buffer is cleared. Accumulating many
samples per extracted value dilutes the correlation between consecutive raw
readings, so a burst of correlated electrode noise cannot dominate the pool.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import TYPE_CHECKING

import numpy as np

from bio_rng.exceptions import DegenerateBatchError, EntropyCancelledError, SourceUnavailableError
from bio_rng.logging.logger import ExtractionLogger
from bio_rng.logging.types import ExtractionRecord
from bio_rng.normalize import normalize

if TYPE_CHECKING:
    from bio_rng.config import BioRNGConfig
    from bio_rng.pool import EntropyPool
    from bio_rng.sources.base import SampleBatch, SampleSource

logger = logging.getLogger("bio_rng")


class EntropyProducer:
    """Cancellable producer loop feeding an :class:`EntropyPool`.

    Failure handling:
        - A failed or timed-out sample request is logged and skipped; the next
          iteration retries after ``retry_delay_ms``.
        - A channel that cannot be normalized is discarded; the rest of the
          batch is staged.
        - A batch without iterable channels (or not a SampleBatch at all)
          counts as a failed request.
        - While the pool holds ``pool_capacity`` values (if non-zero) no new
          samples are requested until consumers drain it.
        - After ``max_consecutive_failures`` failed requests in a row (if
          non-zero) the loop closes the pool with the error and re-raises it,
          so consumers fail instead of waiting on a dead producer.

    Stopping:
        :meth:`stop` is checked at every iteration boundary, after the
        in-flight sample request has completed. Pool mutation and staging
        reset never straddle an ``await``.

    Args:
        source: Where raw sample batches come from.
        pool: The pool to append extracted values to.
        config: Provides ``sample_size`` and the request timing settings.
        extraction_logger: Diagnostic logger; built from *config* if omitted.
        rng: Generator used for the staging selection; seeded from
            ``config.seed`` if omitted.
    """

    def __init__(
        self,
        source: SampleSource,
        pool: EntropyPool,
        config: BioRNGConfig,
        extraction_logger: ExtractionLogger | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._source = source
        self._pool = pool
        self._sample_size = config.sample_size
        self._timeout_s = config.request_timeout_ms / 1000.0
        self._retry_delay_s = config.retry_delay_ms / 1000.0
        self._max_consecutive_failures = config.max_consecutive_failures
        self._pool_capacity = config.pool_capacity
        self._rng = rng if rng is not None else np.random.default_rng(config.seed)
        self._extraction_logger = extraction_logger or ExtractionLogger(config)

        self._stop_event = threading.Event()
        self._staging: list[float] = []

        self._requests = 0
        self._extractions = 0
        self._failures = 0
        self._consecutive_failures = 0

    # --- Control ---

    def stop(self) -> None:
        """Ask the loop to exit at the next iteration boundary. Thread-safe."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # --- Counters ---

    @property
    def sample_size(self) -> int:
        return self._sample_size

    @property
    def staged_count(self) -> int:
        """Values currently waiting in the staging buffer."""
        return len(self._staging)

    @property
    def requests(self) -> int:
        return self._requests

    @property
    def extractions(self) -> int:
        return self._extractions

    @property
    def failures(self) -> int:
        return self._failures

    # --- Loop ---

    async def run(self) -> None:
        """Produce until stopped, the pool closes, or failures become fatal.

        Raises:
            SourceUnavailableError: When ``max_consecutive_failures`` is reached.
        """
        logger.info(
            "Entropy producer started: source=%s sample_size=%d",
            self._source.name,
            self._sample_size,
        )
        try:
            while not self._stop_event.is_set():
                await self.step()
                await self._wait_for_room()
        except EntropyCancelledError:
            logger.info("Entropy pool closed, producer exiting")
        except SourceUnavailableError as exc:
            logger.error("Entropy producer giving up: %s", exc)
            self._pool.close(exc)
            raise
        finally:
            logger.info(
                "Entropy producer stopped: requests=%d extractions=%d failures=%d",
                self._requests,
                self._extractions,
                self._failures,
            )

    async def step(self) -> float | None:
        """Run one iteration of the loop.

        Returns:
            The value appended to the pool, or ``None`` if this iteration
            only staged samples (or failed).

        Raises:
            SourceUnavailableError: When the consecutive failure limit is hit.
            EntropyCancelledError: If the pool was closed underneath us.
        """
        self._requests += 1
        t0 = time.perf_counter()
        try:
            batch = await asyncio.wait_for(
                self._source.request_sample_batch(),
                timeout=self._timeout_s,
            )
        except Exception as exc:
            await self._fail(exc)
            return None
        fetch_ms = (time.perf_counter() - t0) * 1000.0

        try:
            channels = self._stage(batch)
        except (TypeError, AttributeError, ValueError) as exc:
            await self._fail(exc, reason=f"malformed sample batch ({exc})")
            return None
        self._consecutive_failures = 0

        if len(self._staging) < self._sample_size:
            return None
        return self._extract(batch, channels, fetch_ms)

    # --- Internals ---

    async def _wait_for_room(self) -> None:
        """Yield to the event loop, then idle while the pool is at capacity."""
        await asyncio.sleep(0)
        if not self._pool_capacity:
            return
        while len(self._pool) >= self._pool_capacity and not (
            self._stop_event.is_set() or self._pool.closed
        ):
            await asyncio.sleep(self._pool.poll_interval)

    async def _fail(self, exc: Exception, reason: str | None = None) -> None:
        """Count a failed iteration, then pause ``retry_delay_ms`` before the next one."""
        self._record_failure(exc, reason)
        if self._retry_delay_s > 0 and not self._stop_event.is_set():
            await asyncio.sleep(self._retry_delay_s)

    def _record_failure(self, exc: Exception, reason: str | None = None) -> None:
        self._failures += 1
        self._consecutive_failures += 1
        if reason is None and isinstance(exc, asyncio.TimeoutError):
            reason = f"timed out after {self._timeout_s * 1000:.0f}ms"
        elif reason is None:
            reason = str(exc) or type(exc).__name__
        logger.warning(
            "Sample request %d to %r failed (%d consecutive): %s",
            self._requests,
            self._source.name,
            self._consecutive_failures,
            reason,
        )
        if self._max_consecutive_failures and (
            self._consecutive_failures >= self._max_consecutive_failures
        ):
            raise SourceUnavailableError(
                f"{self._consecutive_failures} consecutive sample requests to "
                f"{self._source.name!r} failed, last error: {reason}"
            ) from exc

    def _stage(self, batch: SampleBatch) -> int:
        """Normalize each channel and append it to the staging buffer.

        Returns:
            Number of channels that were staged.

        Raises:
            TypeError: If the batch has no iterable ``channels``.
            AttributeError: If *batch* is not a SampleBatch. Nothing is
                staged in either case.
        """
        channels = tuple(batch.channels)
        source = batch.source
        staged = 0
        for index, channel in enumerate(channels):
            try:
                normalized = normalize(channel)
            except DegenerateBatchError as exc:
                logger.warning("Discarding channel %d of batch from %r: %s", index, source, exc)
                continue
            self._staging.extend(normalized.tolist())
            staged += 1
        if staged == 0:
            logger.warning("Batch from %r contained no usable channels", source)
        return staged

    def _extract(self, batch: SampleBatch, channels: int, fetch_ms: float) -> float:
        staged_samples = len(self._staging)
        index = int(self._rng.integers(staged_samples))
        value = self._staging[index]
        self._pool.put(value)
        self._staging = []
        self._extractions += 1

        self._extraction_logger.log_extraction(
            ExtractionRecord(
                timestamp_ns=time.time_ns(),
                fetch_ms=fetch_ms,
                source=batch.source,
                channels=channels,
                staged_samples=staged_samples,
                selected_index=index,
                value=value,
                pool_size=len(self._pool),
            )
        )
        return value
