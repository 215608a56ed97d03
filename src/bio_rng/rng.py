"""BioRNG: random numbers drawn from biological electrode noise.

Wires the pieces together::

    sample source -> EntropyProducer -> EntropyPool -> rand() / rand_int()

The producer runs on a private asyncio event loop in a daemon thread that
starts as soon as the instance is constructed. Consumers can be plain
threads (``rand``/``rand_int``) or coroutines on any event loop
(``arand``/``arand_int``).

Usage::

    with BioRNG(BioRNGConfig(sample_size=100, mea_id=4)) as rng:
        die = rng.rand_int(1, 6, timeout=5.0)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import math
import numbers
import threading
from fractions import Fraction
from typing import Any

from bio_rng.config import BioRNGConfig
from bio_rng.exceptions import InvalidRangeError
from bio_rng.logging.logger import ExtractionLogger
from bio_rng.pool import EntropyPool
from bio_rng.producer import EntropyProducer
from bio_rng.sources import SampleSource, SampleSourceRegistry

logger = logging.getLogger("bio_rng")

_DEFAULT_CLOSE_TIMEOUT_S = 5.0


def _check_range(min_value: int, max_value: int) -> None:
    for bound in (min_value, max_value):
        if isinstance(bound, bool) or not isinstance(bound, numbers.Integral):
            raise InvalidRangeError(f"Range bounds must be integers, got {bound!r}")
    if min_value > max_value:
        raise InvalidRangeError(f"min_value ({min_value}) must not exceed max_value ({max_value})")


def scale_to_range(u: float, min_value: int, max_value: int) -> int:
    """Map *u* in [0, 1] onto the inclusive integer range ``[min_value, max_value]``.

    Computes ``floor(u * (max - min + 1)) + min`` with exact rational
    arithmetic, so spans wider than a float can hold do not overflow.
    ``u == 1.0`` maps to ``max_value``, never ``max_value + 1``. A single
    draw carries at most 53 bits, so ranges wider than ``2**53`` are
    covered unevenly.

    Raises:
        InvalidRangeError: If the bounds are not integers or ``min_value > max_value``.
    """
    _check_range(min_value, max_value)
    span = int(max_value) - int(min_value) + 1
    offset = math.floor(Fraction(u) * span)
    return int(min_value) + max(0, min(offset, span - 1))


class BioRNG:
    """Entropy pool fed by a background producer, with a consumer API.

    Args:
        config: Settings; loaded from the environment (``BIO_RNG_*``) if omitted.
        source: Sample source to draw from. Built from ``config.source_type``
            through the registry if omitted.
    """

    def __init__(
        self,
        config: BioRNGConfig | None = None,
        source: SampleSource | None = None,
    ) -> None:
        self._config = config if config is not None else BioRNGConfig()
        self._source = source if source is not None else SampleSourceRegistry.build(self._config)
        self._pool = EntropyPool(poll_interval=self._config.poll_interval_ms / 1000.0)
        self._extraction_logger = ExtractionLogger(self._config)
        self._producer = EntropyProducer(
            self._source,
            self._pool,
            self._config,
            extraction_logger=self._extraction_logger,
        )
        self._closed = False

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="bio-rng-producer",
        )
        self._thread.start()
        self._producer_future = asyncio.run_coroutine_threadsafe(self._producer.run(), self._loop)
        self._producer_future.add_done_callback(self._on_producer_done)

        logger.info(
            "BioRNG initialized: source=%s sample_size=%d poll_interval=%.1fms",
            self._source.name,
            self._config.sample_size,
            self._config.poll_interval_ms,
        )

    def _run_loop(self) -> None:
        """Run the producer's event loop in the background thread."""
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _on_producer_done(self, future: concurrent.futures.Future[None]) -> None:
        if future.cancelled():
            self._pool.close()
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Entropy producer terminated: %s", exc)
            self._pool.close(exc)

    # --- Accessors ---

    @property
    def config(self) -> BioRNGConfig:
        return self._config

    @property
    def source(self) -> SampleSource:
        return self._source

    @property
    def pool(self) -> EntropyPool:
        return self._pool

    @property
    def producer(self) -> EntropyProducer:
        return self._producer

    @property
    def extraction_logger(self) -> ExtractionLogger:
        return self._extraction_logger

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Consumer API ---

    def rand(self, timeout: float | None = None) -> float:
        """Return the next pooled value in [0, 1], waiting while the pool is empty.

        Without *timeout* the wait is unbounded if the producer stalls.

        Raises:
            PoolStarvationError: If *timeout* expires first.
            EntropyCancelledError: If the instance is (or gets) closed, or the
                producer died, before a value is available.
        """
        return self._pool.get(timeout)

    async def arand(self, timeout: float | None = None) -> float:
        """Coroutine version of :meth:`rand`."""
        return await self._pool.aget(timeout)

    def rand_int(self, min_value: int, max_value: int, timeout: float | None = None) -> int:
        """Return a random integer in the inclusive range ``[min_value, max_value]``.

        Raises:
            InvalidRangeError: If ``min_value > max_value``; no entropy is consumed.
            PoolStarvationError: If *timeout* expires first.
            EntropyCancelledError: If the pool closes while waiting.
        """
        _check_range(min_value, max_value)
        return scale_to_range(self.rand(timeout), min_value, max_value)

    async def arand_int(self, min_value: int, max_value: int, timeout: float | None = None) -> int:
        """Coroutine version of :meth:`rand_int`."""
        _check_range(min_value, max_value)
        return scale_to_range(await self.arand(timeout), min_value, max_value)

    # --- Lifecycle ---

    def close(self, timeout: float = _DEFAULT_CLOSE_TIMEOUT_S) -> None:
        """Stop the producer, release waiting consumers and the sample source.

        The producer finishes its in-flight sample request before exiting.
        If that takes longer than *timeout*, the producer task is cancelled
        at its pending ``await``. Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        self._producer.stop()
        try:
            self._producer_future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Entropy producer did not stop within %.1fs, cancelling", timeout)
            self._producer_future.cancel()
            concurrent.futures.wait([self._producer_future], timeout=timeout)
        except concurrent.futures.CancelledError:
            pass
        except Exception:
            # Already reported by _on_producer_done; consumers see it via the pool.
            logger.debug("Entropy producer exited with an error", exc_info=True)
        finally:
            self._pool.close()
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=timeout)
            if not self._thread.is_alive():
                self._loop.close()
            self._source.close()
        logger.info("BioRNG closed after %d extractions", self._producer.extractions)

    def __enter__(self) -> BioRNG:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def health_check(self) -> dict[str, Any]:
        """Return status of the source, producer and pool."""
        return {
            "source": self._source.health_check(),
            "producer_running": not self._producer_future.done(),
            "requests": self._producer.requests,
            "extractions": self._producer.extractions,
            "failures": self._producer.failures,
            "staged_samples": self._producer.staged_count,
            "pool_size": len(self._pool),
            "closed": self._closed,
        }

